from flask import Blueprint, jsonify

from noclick.models import utcnow

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the No-Click game server!'})


@main.route('/api/health')
def health():
    return jsonify({'status': 'OK', 'timestamp': utcnow().isoformat()})
