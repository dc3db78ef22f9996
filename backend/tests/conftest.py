import os
import sys
import pytest

# Ensure the backend root (containing the `tiedrop` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from tiedrop import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STORAGE_BACKEND = 'sql'
    LEADERBOARD_LIMIT = 20
    PLACEMENT_DEPTH = 3
    CHAT_REPLAY_LIMIT = 50
    BROADCAST_PENDING_LIMIT = 500
    SYSTEM_AUTHOR = 'SYSTEM'
    PROFILE_URL_TEMPLATE = 'https://twitter.com/{username}'
    DEV_LOGIN_ENABLED = True


class MemoryTestConfig(TestConfig):
    STORAGE_BACKEND = 'memory'


def _make_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        # Ensure models are imported so tables are created
        import tiedrop.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def flask_app():
    yield from _make_app(TestConfig)


@pytest.fixture()
def memory_app():
    yield from _make_app(MemoryTestConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


def login(client, external_id, username, **extra):
    payload = {'id': external_id, 'username': username}
    payload.update(extra)
    res = client.post('/auth/dev-login', json=payload)
    assert res.status_code == 200
    return res.get_json()['user']


def chat_events(sio, namespace='/ws'):
    return [pkt['args'][0] for pkt in sio.get_received(namespace) if pkt['name'] == 'chat message']
