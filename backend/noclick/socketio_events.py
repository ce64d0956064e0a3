from flask_socketio import join_room, leave_room, emit
from noclick import socketio
from noclick.models import DEVICE_TYPES

LEADERBOARD_ROOM = 'leaderboard'


def _device_room(device_type: str) -> str:
    return f"{LEADERBOARD_ROOM}:{device_type}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_leaderboard(data):
    device_type = (data or {}).get('deviceType')
    if device_type and device_type != 'all' and device_type not in DEVICE_TYPES:
        emit('error', {'message': 'deviceType must be one of: all, mobile, desktop, tablet'})
        return
    room = _device_room(device_type) if device_type in DEVICE_TYPES else LEADERBOARD_ROOM
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_leaderboard(data):
    device_type = (data or {}).get('deviceType')
    room = _device_room(device_type) if device_type in DEVICE_TYPES else LEADERBOARD_ROOM
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def broadcast_leaderboard_update(entry) -> None:
    """Push a ranking change to global and per-device leaderboard watchers."""
    payload = {
        'username': entry.username,
        'deviceType': entry.device_type,
        'bestTime': entry.best_time_seconds,
        'bestAttempts': entry.best_attempts,
        'totalGames': entry.total_games,
    }
    # Use socketio.emit since this runs outside a socket handler
    for room in (LEADERBOARD_ROOM, _device_room(entry.device_type)):
        socketio.emit('leaderboard_update', payload, to=room, namespace='/ws')


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'join_leaderboard': handle_join_leaderboard,
        'leave_leaderboard': handle_leave_leaderboard,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace='/ws')
        if testing:
            # Test-only mirror on default namespace
            socketio.on_event(event, handler, namespace='/')
