from flask import Blueprint, jsonify, request, current_app

from noclick.services.game.ledger import ledger_for_app
from noclick.services.game.rate_limit import client_address, rate_limited
from noclick.services.game.validation import validate_session_end, validate_session_start

game = Blueprint('game', __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@game.route('/start', methods=['POST'])
@rate_limited('general', 'session_start')
def start_session():
    payload = validate_session_start(_json_body())
    session = ledger_for_app().start_session(
        payload['device_type'],
        user_agent=payload['user_agent'] or request.headers.get('User-Agent'),
        ip_address=client_address(),
    )
    return jsonify({
        'success': True,
        'sessionId': session.session_id,
        'startTime': session.start_time.isoformat(),
        'message': 'Game session started successfully',
    }), 201


@game.route('/end', methods=['POST'])
@rate_limited('general', 'session_end')
def end_session():
    cfg = current_app.config
    strict_bounds = None
    if cfg.get('STRICT_TIME_VALIDATION'):
        strict_bounds = (float(cfg.get('MIN_GAME_TIME', 3)), float(cfg.get('MAX_GAME_TIME', 300)))
    payload = validate_session_end(_json_body(), strict_time_bounds=strict_bounds)
    result = ledger_for_app().end_session(**payload)
    session = result.session
    return jsonify({
        'success': True,
        'gameSession': {
            'sessionId': session.session_id,
            'timeTaken': session.time_taken,
            'attempts': session.attempts,
            'maxLevel': session.max_level,
            'deviceType': session.device_type,
            'isValid': session.is_valid,
            'isCompleted': session.is_completed,
        },
        'leaderboardEntry': result.ranking_entry.to_dict() if result.ranking_entry else None,
        'message': 'Game session completed successfully',
    })


@game.route('/session/<string:session_id>', methods=['GET'])
@rate_limited('general')
def get_session(session_id):
    session = ledger_for_app().get_session(session_id)
    return jsonify({'success': True, 'gameSession': session.to_dict()})


@game.route('/stats', methods=['GET'])
@rate_limited('general')
def get_stats():
    return jsonify({'success': True, 'stats': ledger_for_app().stats()})
