from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from tiedrop import broadcaster
from tiedrop.errors import IntegrityViolation, Unauthenticated
from tiedrop.services.leaderboard.submissions import MAX_SCORE, get_leaderboard, submit_score
from tiedrop.storage import get_storage

scores = Blueprint('scores', __name__)


@scores.route('/leaderboard', methods=['GET'])
def leaderboard():
    limit = request.args.get('limit', type=int)
    entries = get_leaderboard(get_storage(), limit)
    return jsonify([entry.to_dict() for entry in entries])


@scores.route('/score', methods=['POST'])
def post_score():
    identity = current_user._get_current_object() if current_user.is_authenticated else None
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    score = data.get('score')
    # bool is an int subclass; reject it explicitly
    if identity is not None and (not isinstance(score, int) or isinstance(score, bool) or not 0 <= score <= MAX_SCORE):
        return jsonify({'success': False, 'error': f'score must be an integer between 0 and {MAX_SCORE}'}), 400

    try:
        event = submit_score(get_storage(), broadcaster, identity, score)
    except Unauthenticated:
        return jsonify({'success': False, 'error': 'Not authenticated'}), 401
    except IntegrityViolation as exc:
        current_app.logger.error(f"[score-rejected] identity={identity.id} error={exc}")
        return jsonify({'success': False, 'error': 'Unknown identity'}), 500

    return jsonify({'success': True, 'accepted': True, 'id': event.id})
