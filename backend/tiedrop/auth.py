from dataclasses import dataclass
from typing import Optional

from flask import Blueprint, abort, current_app, jsonify, request
from flask_login import current_user, login_user, logout_user

from tiedrop.entities import Profile
from tiedrop.storage import get_storage

auth = Blueprint('auth', __name__)


@dataclass(frozen=True)
class ProviderProfile:
    """What an identity provider hands back after a successful handshake."""
    external_id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


def complete_login(provider_profile: ProviderProfile) -> Profile:
    """Merge the provider's profile into the directory and start a session.

    Safe to call on every login; the latest profile wins.
    """
    template = current_app.config.get('PROFILE_URL_TEMPLATE') or ''
    profile = Profile(
        id=str(provider_profile.external_id),
        username=provider_profile.username,
        display_name=provider_profile.display_name,
        avatar_url=provider_profile.avatar_url,
        profile_url=template.format(username=provider_profile.username) if template else None,
    )
    get_storage().upsert_identity(profile)
    login_user(profile)
    current_app.logger.info(f"[login] identity={profile.id} username={profile.username}")
    return profile


@auth.route('/auth/dev-login', methods=['POST'])
def dev_login():
    if not current_app.config.get('DEV_LOGIN_ENABLED'):
        abort(404)
    data = request.get_json(silent=True) or {}
    if not data.get('id') or not data.get('username'):
        return jsonify({'success': False, 'error': 'id and username are required'}), 400
    profile = complete_login(ProviderProfile(
        external_id=data['id'],
        username=data['username'],
        display_name=data.get('display_name'),
        avatar_url=data.get('photo_url'),
    ))
    return jsonify({'success': True, 'user': profile.to_dict()})


@auth.route('/auth/logout', methods=['GET', 'POST'])
def logout():
    logout_user()
    return jsonify({'success': True})


@auth.route('/api/user')
def get_current_user():
    if current_user.is_authenticated:
        return jsonify({'authenticated': True, 'user': current_user.to_dict()})
    return jsonify({'authenticated': False})
