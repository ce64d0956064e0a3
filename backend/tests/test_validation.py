import uuid

import pytest
from werkzeug.datastructures import MultiDict

from noclick.errors import InvalidInput
from noclick.services.game.validation import (
    validate_leaderboard_query, validate_session_end, validate_session_start,
)


def _end(**overrides):
    data = {'sessionId': str(uuid.uuid4()), 'timeTaken': 15, 'attempts': 8, 'maxLevel': 3}
    data.update(overrides)
    return data


def test_session_start_requires_known_device():
    assert validate_session_start({'deviceType': 'tablet'})['device_type'] == 'tablet'
    with pytest.raises(InvalidInput) as info:
        validate_session_start({'deviceType': 'fridge', 'userAgent': 42})
    assert len(info.value.details) == 2


def test_session_end_accepts_uuid_and_alphanumeric_ids():
    assert validate_session_end(_end())['time_taken'] == 15.0
    assert validate_session_end(_end(sessionId='abc123'))['session_id'] == 'abc123'
    legacy = '6ba7b810-9dad-11d1-80b4-00c04fd430c8'
    assert validate_session_end(_end(sessionId=legacy))['session_id'] == legacy


@pytest.mark.parametrize('overrides', [
    {'sessionId': ''},
    {'sessionId': 'not a uuid!'},
    {'timeTaken': -1},
    {'timeTaken': '15'},
    {'attempts': True},
    {'attempts': None},
    {'maxLevel': 0},
    {'username': 12},
    {'username': 'x' * 51},
    {'timeTaken': float('nan')},
    {'timeTaken': float('inf')},
    {'attempts': float('nan')},
    {'maxLevel': float('inf')},
])
def test_session_end_rejects_malformed_fields(overrides):
    with pytest.raises(InvalidInput):
        validate_session_end(_end(**overrides))


def test_errors_are_collected_together():
    with pytest.raises(InvalidInput) as info:
        validate_session_end({})
    assert len(info.value.details) == 4


def test_strict_time_bounds_reject_implausible_times():
    assert validate_session_end(_end(timeTaken=400))['time_taken'] == 400.0
    with pytest.raises(InvalidInput) as info:
        validate_session_end(_end(timeTaken=400), strict_time_bounds=(3, 300))
    assert info.value.details == ['Game time too long (maximum 300 seconds)']
    with pytest.raises(InvalidInput):
        validate_session_end(_end(timeTaken=1), strict_time_bounds=(3, 300))


def test_leaderboard_query_defaults_and_bounds():
    assert validate_leaderboard_query(MultiDict()) == {'limit': 10, 'device_type': None}
    assert validate_leaderboard_query(MultiDict({'limit': '100', 'deviceType': 'mobile'})) == {
        'limit': 100, 'device_type': 'mobile'}
    for bad in ({'limit': '0'}, {'limit': '101'}, {'limit': 'ten'}, {'deviceType': 'console'}):
        with pytest.raises(InvalidInput):
            validate_leaderboard_query(MultiDict(bad))
