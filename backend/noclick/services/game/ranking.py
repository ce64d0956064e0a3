from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from noclick import db
from noclick.errors import StoreFailure
from noclick.models import RankingEntry, utcnow

_UPSERT_DIALECTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def upsert_score(username: str, device_type: str, time_taken: float, attempts: int,
                 max_level: int, session_id: str, is_valid: bool) -> RankingEntry:
    """Create or overwrite the ranking entry for (username, device_type).

    The stored best fields are replaced unconditionally by this session's
    numbers, not compared against the previous ones; total_games grows by
    one per call. The write is a single atomic upsert where the dialect
    supports it so concurrent finalizations never lose an increment.
    """
    values = {
        'username': username,
        'device_type': device_type,
        'best_time_seconds': time_taken,
        'best_attempts': attempts,
        'max_level': max_level,
        'session_id': session_id,
        'is_valid': is_valid,
    }
    try:
        insert = _UPSERT_DIALECTS.get(db.engine.dialect.name)
        if insert is not None:
            table = RankingEntry.__table__
            stmt = insert(table).values(total_games=1, **values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.username, table.c.device_type],
                set_={
                    'best_time_seconds': stmt.excluded.best_time_seconds,
                    'best_attempts': stmt.excluded.best_attempts,
                    'max_level': stmt.excluded.max_level,
                    'session_id': stmt.excluded.session_id,
                    'is_valid': stmt.excluded.is_valid,
                    'total_games': table.c.total_games + 1,
                    'updated_at': utcnow(),
                },
            )
            db.session.execute(stmt)
        else:
            entry = (RankingEntry.query
                     .filter_by(username=username, device_type=device_type)
                     .with_for_update()
                     .first())
            if entry is None:
                db.session.add(RankingEntry(total_games=1, **values))
            else:
                for key, value in values.items():
                    setattr(entry, key, value)
                entry.total_games = RankingEntry.total_games + 1
        db.session.commit()
        entry = (RankingEntry.query
                 .filter_by(username=username, device_type=device_type)
                 .populate_existing()
                 .one())
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreFailure(exc) from exc
    return entry


def _valid_entries(device_type: Optional[str] = None):
    query = RankingEntry.query.filter(RankingEntry.is_valid.is_(True))
    if device_type:
        query = query.filter(RankingEntry.device_type == device_type)
    return query


def top_scores(limit: int = 10, device_type: Optional[str] = None) -> List[RankingEntry]:
    """Valid entries ordered by best time, then fewest attempts."""
    limit = max(1, min(100, int(limit)))
    try:
        return (_valid_entries(device_type)
                .order_by(RankingEntry.best_time_seconds.asc(),
                          RankingEntry.best_attempts.asc(),
                          RankingEntry.id.asc())
                .limit(limit)
                .all())
    except SQLAlchemyError as exc:
        raise StoreFailure(exc) from exc


def user_scores(username: str) -> List[RankingEntry]:
    try:
        return (_valid_entries()
                .filter(RankingEntry.username == username)
                .order_by(RankingEntry.best_time_seconds.asc())
                .all())
    except SQLAlchemyError as exc:
        raise StoreFailure(exc) from exc


def _summary(entry: Optional[RankingEntry], field: str, attr: str) -> Optional[dict]:
    if entry is None:
        return None
    return {'username': entry.username, field: getattr(entry, attr), 'deviceType': entry.device_type}


def leaderboard_stats() -> dict:
    try:
        total_entries = _valid_entries().count()
        per_device = (db.session.query(RankingEntry.device_type,
                                       func.count(RankingEntry.id),
                                       func.avg(RankingEntry.best_time_seconds))
                      .filter(RankingEntry.is_valid.is_(True))
                      .group_by(RankingEntry.device_type)
                      .all())
        fastest = _valid_entries().order_by(RankingEntry.best_time_seconds.asc()).first()
        most_attempts = _valid_entries().order_by(RankingEntry.best_attempts.desc()).first()
        highest_level = _valid_entries().order_by(RankingEntry.max_level.desc()).first()
    except SQLAlchemyError as exc:
        raise StoreFailure(exc) from exc
    return {
        'totalEntries': total_entries,
        'deviceStats': {
            device: {'count': count, 'avgTime': round(float(avg or 0), 2)}
            for device, count, avg in per_device
        },
        'bestOverallTime': _summary(fastest, 'bestTime', 'best_time_seconds'),
        'mostAttempts': _summary(most_attempts, 'bestAttempts', 'best_attempts'),
        'highestLevel': _summary(highest_level, 'maxLevel', 'max_level'),
    }
