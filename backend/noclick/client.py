"""HTTP client for the game server, used by a client that runs the evasion engine.

    service = GameService('http://localhost:5000/api')
    started = service.start_game('desktop')
    engine = EvasionEngine('desktop', on_activated=lambda outcome:
                           service.end_game(started['sessionId'], outcome, username='Ada'))
"""

import os

import requests

API_BASE_URL = os.environ.get('NOCLICK_API_URL', 'http://localhost:5000/api')
DEFAULT_TIMEOUT = 10


class GameServiceError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class GameService:
    def __init__(self, base_url=API_BASE_URL, session=None, timeout=DEFAULT_TIMEOUT, user_agent=None):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.user_agent = user_agent

    def _request(self, method, path, fallback, **kwargs):
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise GameServiceError(fallback) from exc
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.status_code >= 400:
            raise GameServiceError(data.get('error') or fallback, response.status_code)
        return data

    def start_game(self, device_type):
        body = {'deviceType': device_type}
        if self.user_agent:
            body['userAgent'] = self.user_agent
        return self._request('POST', '/game/start', 'Failed to start game', json=body)

    def end_game(self, session_id, outcome, username=None):
        """Submit a RoundOutcome for a session started with start_game."""
        body = {
            'sessionId': session_id,
            'timeTaken': outcome.time_taken,
            'attempts': outcome.attempts,
            'maxLevel': outcome.max_level,
        }
        if username:
            body['username'] = username
        return self._request('POST', '/game/end', 'Failed to end game', json=body)

    def get_session(self, session_id):
        return self._request('GET', f'/game/session/{session_id}', 'Failed to get session')

    def get_game_stats(self):
        return self._request('GET', '/game/stats', 'Failed to get game stats')

    def get_leaderboard(self, limit=10, device_type='all'):
        params = {'limit': limit, 'deviceType': device_type}
        return self._request('GET', '/leaderboard', 'Failed to get leaderboard', params=params)

    def get_user_scores(self, username):
        return self._request('GET', f'/leaderboard/user/{username}', 'Failed to get user scores')

    def get_leaderboard_stats(self):
        return self._request('GET', '/leaderboard/stats', 'Failed to get leaderboard stats')

    def health_check(self):
        return self._request('GET', '/health', 'Health check failed')
