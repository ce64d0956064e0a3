from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One limiter per app so tests never share windows
    from noclick.services.game.rate_limit import SlidingWindowLimiter
    flask_app.extensions['noclick.rate_limiter'] = SlidingWindowLimiter(
        flask_app.config.get('RATE_LIMITS') or {},
        enabled=flask_app.config.get('RATE_LIMIT_ENABLED', True),
    )

    from noclick.errors import register_error_handlers
    register_error_handlers(flask_app)

    # Import and register blueprints here
    from noclick.main import main
    flask_app.register_blueprint(main)

    from noclick.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from noclick.api.leaderboard import leaderboard
    flask_app.register_blueprint(leaderboard, url_prefix='/api/leaderboard')

    from noclick.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @flask_app.errorhandler(404)
    def not_found(_exc):
        return jsonify({'success': False, 'error': 'Route not found'}), 404

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the session and ranking tables."""
        import noclick.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
