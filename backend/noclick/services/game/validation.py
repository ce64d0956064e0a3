"""Request payload checks that run before the ledger is invoked.

Each validator collects every problem and raises a single InvalidInput
with the list in ``details``. On success it returns the cleaned values.
"""

import math
import re
import uuid

from noclick.errors import InvalidInput
from noclick.models import DEVICE_TYPES

_SESSION_ID_RE = re.compile(r'^[A-Za-z0-9-]+$')
MAX_USERNAME_LENGTH = 50
MAX_LEADERBOARD_LIMIT = 100


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_session_id(value) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        return uuid.UUID(value).version == 4
    except ValueError:
        return bool(_SESSION_ID_RE.match(value))


def validate_session_start(data: dict) -> dict:
    errors = []
    device_type = data.get('deviceType')
    user_agent = data.get('userAgent')
    if not device_type or device_type not in DEVICE_TYPES:
        errors.append('Valid deviceType is required (mobile, desktop, tablet)')
    if user_agent is not None and not isinstance(user_agent, str):
        errors.append('UserAgent must be a string')
    if errors:
        raise InvalidInput(details=errors)
    return {'device_type': device_type, 'user_agent': user_agent}


def validate_session_end(data: dict, strict_time_bounds=None) -> dict:
    """Check a session-end payload.

    strict_time_bounds, when given as (min_time, max_time), also rejects
    times outside the plausible range instead of letting the ledger flag
    them invalid.
    """
    errors = []
    session_id = data.get('sessionId')
    time_taken = data.get('timeTaken')
    attempts = data.get('attempts')
    max_level = data.get('maxLevel')
    username = data.get('username')

    if not _is_session_id(session_id):
        errors.append('Valid sessionId is required')
    if not _is_number(time_taken) or time_taken < 0:
        errors.append('Valid timeTaken is required (positive number)')
    if not _is_number(attempts) or attempts < 0:
        errors.append('Valid attempts is required (positive number)')
    if not _is_number(max_level) or max_level < 1:
        errors.append('Valid maxLevel is required (number >= 1)')
    if username is not None:
        if not isinstance(username, str):
            errors.append('Username must be a string')
        elif len(username.strip()) > MAX_USERNAME_LENGTH:
            errors.append(f'Username must be at most {MAX_USERNAME_LENGTH} characters')

    if strict_time_bounds and _is_number(time_taken):
        min_time, max_time = strict_time_bounds
        if time_taken < min_time:
            errors.append(f'Game time too short (minimum {min_time:g} seconds)')
        if time_taken > max_time:
            errors.append(f'Game time too long (maximum {max_time:g} seconds)')

    if errors:
        raise InvalidInput(details=errors)
    return {
        'session_id': session_id,
        'time_taken': float(time_taken),
        'attempts': int(attempts),
        'max_level': int(max_level),
        'username': username,
    }


def validate_leaderboard_query(args) -> dict:
    limit = args.get('limit', '10')
    device_type = args.get('deviceType', 'all') or 'all'
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        limit = None
    if limit is None or not 1 <= limit <= MAX_LEADERBOARD_LIMIT:
        raise InvalidInput(f'Limit must be an integer between 1 and {MAX_LEADERBOARD_LIMIT}')
    if device_type != 'all' and device_type not in DEVICE_TYPES:
        raise InvalidInput('DeviceType must be one of: all, mobile, desktop, tablet')
    return {'limit': limit, 'device_type': None if device_type == 'all' else device_type}
