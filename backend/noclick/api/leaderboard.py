from flask import Blueprint, jsonify, request

from noclick.errors import InvalidInput, NotFound
from noclick.services.game import ranking
from noclick.services.game.rate_limit import rate_limited
from noclick.services.game.validation import validate_leaderboard_query

leaderboard = Blueprint('leaderboard', __name__)


@leaderboard.route('', methods=['GET'])
@rate_limited('general', 'leaderboard')
def top_scores():
    query = validate_leaderboard_query(request.args)
    scores = ranking.top_scores(query['limit'], query['device_type'])
    return jsonify({
        'success': True,
        'scores': [entry.to_dict() for entry in scores],
        'count': len(scores),
        'deviceType': query['device_type'] or 'all',
        'limit': query['limit'],
    })


@leaderboard.route('/user/<string:username>', methods=['GET'])
@rate_limited('general', 'leaderboard')
def user_scores(username):
    username = username.strip()
    if not username:
        raise InvalidInput('Username is required')
    scores = ranking.user_scores(username)
    if not scores:
        raise NotFound('No scores found for this user')
    return jsonify({
        'success': True,
        'username': username,
        'scores': [entry.to_dict() for entry in scores],
        'count': len(scores),
    })


@leaderboard.route('/stats', methods=['GET'])
@rate_limited('general', 'leaderboard')
def stats():
    return jsonify({'success': True, 'stats': ranking.leaderboard_stats()})
