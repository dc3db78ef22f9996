from sqlalchemy.exc import OperationalError

from conftest import TestConfig, chat_events, login
from tiedrop import create_app, db
from tiedrop.errors import StorageUnavailable
from tiedrop.services.leaderboard.placement import announcement_text
from tiedrop.services.leaderboard.submissions import MAX_SCORE
from tiedrop.storage import get_storage


def _submit(client, score):
    res = client.post('/api/score', json={'score': score})
    assert res.status_code == 200
    body = res.get_json()
    assert body['success'] is True
    assert body['accepted'] is True
    return body


def test_submit_score_requires_login(client, sio_client):
    sio_client.get_received('/ws')
    res = client.post('/api/score', json={'score': 10})
    assert res.status_code == 401
    assert res.get_json() == {'success': False, 'error': 'Not authenticated'}
    assert get_storage().query_leaderboard(20) == []
    assert get_storage().query_recent_messages(50) == []
    assert chat_events(sio_client) == []


def test_podium_announcements_follow_new_bests(client, sio_client):
    sio_client.get_received('/ws')
    login(client, '1', 'alice')

    _submit(client, 10)
    assert [m['text'] for m in chat_events(sio_client)] == [announcement_text(1, 'alice', 10)]

    _submit(client, 50)
    assert [m['text'] for m in chat_events(sio_client)] == [announcement_text(1, 'alice', 50)]

    login(client, '2', 'bob')
    _submit(client, 60)
    # alice drops to second but is not announced again
    assert [m['text'] for m in chat_events(sio_client)] == [announcement_text(1, 'bob', 60)]

    login(client, '1', 'alice')
    _submit(client, 20)
    assert chat_events(sio_client) == []

    logged = get_storage().query_recent_messages(50)
    assert [m.user for m in logged] == ['SYSTEM', 'SYSTEM', 'SYSTEM']


def test_new_best_outside_podium_is_silent(client, sio_client):
    storage = get_storage()
    for ident, name, score in [('1', 'a', 100), ('2', 'b', 90), ('3', 'c', 80)]:
        login(client, ident, name)
        _submit(client, score)
    sio_client.get_received('/ws')

    login(client, '4', 'dana')
    _submit(client, 50)
    assert chat_events(sio_client) == []

    _submit(client, 85)
    events = chat_events(sio_client)
    assert len(events) == 1
    assert events[0]['user'] == 'SYSTEM'
    assert events[0]['text'] == announcement_text(3, 'dana', 85)
    assert [e.identity_id for e in storage.query_leaderboard(20)] == ['1', '2', '4', '3']


def test_submit_rejects_invalid_scores(client):
    login(client, '1', 'alice')
    for bad in (-1, 'abc', 1.5, True, None, MAX_SCORE + 1, 2 ** 64):
        res = client.post('/api/score', json={'score': bad})
        assert res.status_code == 400
        assert res.get_json()['success'] is False
    assert client.post('/api/score', json=[10]).status_code == 400
    assert get_storage().query_leaderboard(20) == []

    _submit(client, MAX_SCORE)
    assert [e.best_score for e in get_storage().query_leaderboard(20)] == [MAX_SCORE]


def test_database_error_is_reported_and_session_recovers(client, monkeypatch):
    login(client, '1', 'alice')

    def locked():
        raise OperationalError('INSERT INTO score', {}, Exception('database is locked'))

    monkeypatch.setattr(db.session, 'commit', locked)
    res = client.post('/api/score', json={'score': 5})
    assert res.status_code == 503
    assert res.get_json() == {'success': False, 'error': 'Storage unavailable'}

    monkeypatch.undo()
    assert get_storage().query_leaderboard(20) == []
    _submit(client, 6)
    assert [e.best_score for e in get_storage().query_leaderboard(20)] == [6]


def test_leaderboard_endpoint_orders_and_caps(client):
    storage = get_storage()
    for i in range(25):
        login(client, f"id{i}", f"user{i}", photo_url=f"http://img/{i}.png")
    for i in range(25):
        storage.append_score(f"id{i}", i * 10)

    rows = client.get('/api/leaderboard').get_json()
    assert len(rows) == 20
    assert rows[0] == {
        'rank': 1,
        'username': 'user24',
        'display_name': None,
        'avatar_url': 'http://img/24.png',
        'profile_url': 'https://twitter.com/user24',
        'best_score': 240,
    }
    assert [r['best_score'] for r in rows] == sorted((r['best_score'] for r in rows), reverse=True)

    assert len(client.get('/api/leaderboard?limit=2').get_json()) == 2
    assert len(client.get('/api/leaderboard?limit=500').get_json()) == 20
    assert client.get('/api/leaderboard?limit=0').get_json() == []
    assert client.get('/api/leaderboard?limit=-3').get_json() == []


def test_current_user_and_logout(client):
    assert client.get('/api/user').get_json() == {'authenticated': False}
    login(client, '7', 'gina', display_name='Gina', photo_url='http://img/g.png')
    body = client.get('/api/user').get_json()
    assert body['authenticated'] is True
    assert body['user']['id'] == '7'
    assert body['user']['profile_url'] == 'https://twitter.com/gina'
    assert client.post('/auth/logout').get_json() == {'success': True}
    assert client.get('/api/user').get_json() == {'authenticated': False}


def test_login_refreshes_profile(client):
    login(client, '7', 'gina', display_name='Gina')
    login(client, '7', 'gina_renamed', display_name='Gina R')
    profile = get_storage().get_identity('7')
    assert profile.username == 'gina_renamed'
    assert profile.display_name == 'Gina R'


def test_dev_login_can_be_disabled():
    class ProdLikeConfig(TestConfig):
        DEV_LOGIN_ENABLED = False

    application = create_app(ProdLikeConfig)
    res = application.test_client().post('/auth/dev-login', json={'id': '1', 'username': 'a'})
    assert res.status_code == 404


def test_announcement_failure_does_not_fail_submission(memory_app, monkeypatch):
    client = memory_app.test_client()
    storage = get_storage()
    login(client, '1', 'alice')

    def broken(limit):
        raise StorageUnavailable('leaderboard query timed out')

    monkeypatch.setattr(storage, 'query_leaderboard', broken)
    _submit(client, 42)
    assert [e.score for e in storage.scores()] == [42]
    assert storage.query_recent_messages(50) == []


def test_storage_failure_on_primary_paths_is_reported(memory_app, monkeypatch):
    client = memory_app.test_client()
    storage = get_storage()
    login(client, '1', 'alice')

    def broken(*args):
        raise StorageUnavailable('down')

    monkeypatch.setattr(storage, 'append_score', broken)
    res = client.post('/api/score', json={'score': 5})
    assert res.status_code == 503
    assert res.get_json()['success'] is False

    monkeypatch.setattr(storage, 'query_leaderboard', broken)
    assert client.get('/api/leaderboard').status_code == 503


def test_db_reset_command(flask_app):
    get_storage().append_message('amy', 'hi')
    result = flask_app.test_cli_runner().invoke(args=['db-reset'])
    assert 'Database has been reset' in result.output
    assert get_storage().query_recent_messages(50) == []
