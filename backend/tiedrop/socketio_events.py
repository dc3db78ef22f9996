from flask import current_app, request
from flask_socketio import emit

from tiedrop import broadcaster
from tiedrop import socketio
from tiedrop.errors import StorageUnavailable
from tiedrop.services.leaderboard.submissions import post_chat_message
from tiedrop.storage import get_storage

CHAT_NAMESPACE = '/ws'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    storage = get_storage()
    limit = int(current_app.config.get('CHAT_REPLAY_LIMIT', 50))
    broadcaster.connect(_get_sid(), lambda: storage.query_recent_messages(limit))


def handle_disconnect(*args):
    broadcaster.disconnect(_get_sid())


def handle_chat_message(data):
    if not isinstance(data, dict):
        data = {}
    text = data.get('text')
    if text is None:
        emit('error', {'message': 'text is required'})
        return
    user = str(data.get('user') or 'anonymous')
    try:
        post_chat_message(get_storage(), broadcaster, user, str(text))
    except StorageUnavailable as exc:
        current_app.logger.error(f"[chat-failed] sid={_get_sid()} error={exc}")
        emit('error', {'message': 'Message could not be saved'})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the chat namespace."""
    socketio.on_event('connect', handle_connect, namespace=CHAT_NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=CHAT_NAMESPACE)
    socketio.on_event('chat message', handle_chat_message, namespace=CHAT_NAMESPACE)
