import os
import sys
import pytest

# Ensure the backend root (containing the `noclick` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from noclick import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:3000']
    MIN_GAME_TIME = 3
    MAX_GAME_TIME = 300
    PLAUSIBILITY_CHECK_ENABLED = True
    STRICT_TIME_VALIDATION = False
    RATE_LIMIT_ENABLED = False
    RATE_LIMITS = {}


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_app(config_class=TestConfig):
    application = create_app(config_class)
    with application.app_context():
        # Ensure models are imported so tables are created
        import noclick.models  # noqa: F401
        db.create_all()
    return application


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        import noclick.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def clock():
    return FakeClock()


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
