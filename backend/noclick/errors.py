"""Error taxonomy shared by the session ledger, ranking and HTTP layers.

Every core failure is terminal for the call that raised it; the HTTP
layer maps each class to a status code and a client-safe message.
"""

from typing import List, Optional

from flask import jsonify


class GameError(Exception):
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message: Optional[str] = None, details: Optional[List[str]] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.details = details or []

    def to_dict(self) -> dict:
        payload = {'success': False, 'error': self.message}
        if self.details:
            payload['details'] = list(self.details)
        return payload


class InvalidInput(GameError):
    status_code = 400
    message = 'Validation failed'


class NotFound(GameError):
    status_code = 404
    message = 'Game session not found'


class AlreadyCompleted(GameError):
    status_code = 400
    message = 'Game session already completed'


class Throttled(GameError):
    status_code = 429
    message = 'Too many requests, please try again later.'

    def __init__(self, message: Optional[str] = None, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = int(retry_after)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload['retryAfter'] = self.retry_after
        return payload


class StoreFailure(GameError):
    """Persistence fault. The wrapped store error is logged, never returned."""

    status_code = 500

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__()
        self.message = GameError.message
        self.cause = cause


def register_error_handlers(flask_app) -> None:
    @flask_app.errorhandler(GameError)
    def handle_game_error(exc: GameError):
        if isinstance(exc, StoreFailure):
            flask_app.logger.error(f"[store-failure] {exc.cause!r}")
        response = jsonify(exc.to_dict())
        response.status_code = exc.status_code
        if isinstance(exc, Throttled) and exc.retry_after:
            response.headers['Retry-After'] = str(exc.retry_after)
        return response
