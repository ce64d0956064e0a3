from sqlalchemy.exc import SQLAlchemyError

from conftest import TestConfig, make_app
from noclick import db


def _start(client, device='desktop'):
    res = client.post('/api/game/start', json={'deviceType': device})
    assert res.status_code == 201
    return res.get_json()['sessionId']


def _end(client, session_id, time_taken=15, attempts=8, max_level=3, username=None):
    body = {'sessionId': session_id, 'timeTaken': time_taken, 'attempts': attempts, 'maxLevel': max_level}
    if username is not None:
        body['username'] = username
    return client.post('/api/game/end', json=body)


def test_index_and_health(client):
    assert client.get('/').status_code == 200
    res = client.get('/api/health')
    assert res.status_code == 200
    assert res.get_json()['status'] == 'OK'


def test_start_session(client):
    res = client.post('/api/game/start', json={'deviceType': 'desktop'}, headers={'User-Agent': 'pytest-agent'})
    assert res.status_code == 201
    data = res.get_json()
    assert data['success'] is True
    assert data['sessionId']
    assert data['startTime']

    session = client.get(f"/api/game/session/{data['sessionId']}").get_json()['gameSession']
    assert session['isCompleted'] is False
    assert session['userAgent'] == 'pytest-agent'
    assert 'ipAddress' not in session


def test_start_session_requires_device_type(client):
    res = client.post('/api/game/start', json={})
    assert res.status_code == 400
    data = res.get_json()
    assert data['success'] is False
    assert data['error'] == 'Validation failed'
    assert data['details']


def test_full_round_and_overwrite_scenario(client):
    sid = _start(client)
    res = _end(client, sid, 15, 8, 3, 'Ada')
    assert res.status_code == 200
    data = res.get_json()
    assert data['gameSession']['isValid'] is True
    assert data['gameSession']['isCompleted'] is True
    entry = data['leaderboardEntry']
    assert entry['username'] == 'Ada'
    assert entry['deviceType'] == 'desktop'
    assert entry['bestTime'] == 15
    assert entry['totalGames'] == 1

    sid2 = _start(client)
    entry = _end(client, sid2, 10, 12, 2, 'Ada').get_json()['leaderboardEntry']
    assert entry['bestTime'] == 10
    assert entry['bestAttempts'] == 12
    assert entry['totalGames'] == 2


def test_end_unknown_session_is_404(client):
    res = _end(client, 'abc123')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'Game session not found'


def test_double_submit_is_rejected(client):
    sid = _start(client)
    assert _end(client, sid).status_code == 200
    res = _end(client, sid, username='Ada')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Game session already completed'


def test_implausible_time_is_stored_but_not_ranked(client):
    sid = _start(client, 'mobile')
    res = _end(client, sid, time_taken=400, username='Ada')
    assert res.status_code == 200
    data = res.get_json()
    assert data['gameSession']['isValid'] is False
    assert data['leaderboardEntry'] is None
    assert client.get('/api/leaderboard').get_json()['count'] == 0


def test_malformed_end_payload(client):
    res = client.post('/api/game/end', json={'sessionId': 'abc', 'timeTaken': -5})
    assert res.status_code == 400
    assert len(res.get_json()['details']) == 3


class StrictConfig(TestConfig):
    STRICT_TIME_VALIDATION = True


def test_strict_time_validation_rejects_before_ledger():
    app = make_app(StrictConfig)
    client = app.test_client()
    sid = _start(client)
    res = _end(client, sid, time_taken=1, username='Ada')
    assert res.status_code == 400
    # The session was never finalized, so a plausible retry still works
    assert _end(client, sid, time_taken=5, username='Ada').status_code == 200


def test_leaderboard_top(client):
    for name, time_taken, attempts, device in [
        ('Ada', 20, 5, 'desktop'), ('Bob', 12, 9, 'mobile'), ('Cy', 12, 3, 'desktop'), ('Dee', 500, 1, 'desktop'),
    ]:
        _end(client, _start(client, device), time_taken, attempts, 1, name)

    data = client.get('/api/leaderboard?limit=10').get_json()
    assert data['success'] is True
    assert data['deviceType'] == 'all'
    assert [s['username'] for s in data['scores']] == ['Cy', 'Bob', 'Ada']

    data = client.get('/api/leaderboard?limit=1&deviceType=desktop').get_json()
    assert data['count'] == 1
    assert data['scores'][0]['username'] == 'Cy'

    assert client.get('/api/leaderboard?limit=0').status_code == 400
    assert client.get('/api/leaderboard?limit=101').status_code == 400
    assert client.get('/api/leaderboard?deviceType=console').status_code == 400


def test_user_scores(client):
    _end(client, _start(client, 'desktop'), 20, 5, 1, 'Ada')
    _end(client, _start(client, 'mobile'), 14, 5, 1, 'Ada')
    data = client.get('/api/leaderboard/user/Ada').get_json()
    assert data['count'] == 2
    assert [s['deviceType'] for s in data['scores']] == ['mobile', 'desktop']
    assert client.get('/api/leaderboard/user/Nobody').status_code == 404


def test_stats_endpoints(client):
    _end(client, _start(client, 'desktop'), 20, 5, 2, 'Ada')
    _start(client, 'tablet')
    game_stats = client.get('/api/game/stats').get_json()['stats']
    assert game_stats['totalSessions'] == 2
    assert game_stats['completedSessions'] == 1
    assert game_stats['completionRate'] == 50.0
    board_stats = client.get('/api/leaderboard/stats').get_json()['stats']
    assert board_stats['totalEntries'] == 1
    assert board_stats['highestLevel']['maxLevel'] == 2


def test_store_failure_hides_details(client, monkeypatch):
    def boom():
        raise SQLAlchemyError('password=hunter2')

    monkeypatch.setattr(db.session, 'commit', boom)
    res = client.post('/api/game/start', json={'deviceType': 'desktop'})
    assert res.status_code == 500
    body = res.get_json()
    assert body == {'success': False, 'error': 'Internal server error'}


def test_unknown_route_is_json_404(client):
    res = client.get('/api/nope')
    assert res.status_code == 404
    assert res.get_json()['success'] is False


def test_non_finite_numbers_are_rejected_and_session_stays_open(client):
    sid = _start(client)
    for field in ('"timeTaken": NaN, "attempts": 8, "maxLevel": 3',
                  '"timeTaken": 15, "attempts": NaN, "maxLevel": 3',
                  '"timeTaken": 15, "attempts": 8, "maxLevel": Infinity'):
        res = client.post('/api/game/end', data=f'{{"sessionId": "{sid}", {field}}}',
                          content_type='application/json')
        assert res.status_code == 400
        assert res.get_json()['error'] == 'Validation failed'
    # None of the rejected payloads finalized the session
    assert _end(client, sid).status_code == 200


def test_hyphenated_unknown_session_is_404(client):
    res = _end(client, '6ba7b810-9dad-11d1-80b4-00c04fd430c8')
    assert res.status_code == 404
