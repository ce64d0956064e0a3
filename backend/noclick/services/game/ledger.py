"""Server-side authority over game sessions.

A session is created when a round starts and finalized exactly once when
the client reports its outcome. Finalization is a conditional update on
``is_completed`` so two concurrent submissions for the same id can never
both succeed.

The plausibility check only bounds the client-reported duration. The
client measures its own time, so this is a coarse sanity filter against
obviously impossible results and not a security boundary.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from noclick import db
from noclick.errors import AlreadyCompleted, InvalidInput, NotFound, StoreFailure
from noclick.models import DEVICE_TYPES, GameSession, generate_session_id, utcnow
from . import ranking


@dataclass(frozen=True)
class LedgerConfig:
    min_time: float = 3.0
    max_time: float = 300.0
    plausibility_check_enabled: bool = True

    @classmethod
    def from_mapping(cls, mapping) -> 'LedgerConfig':
        return cls(
            min_time=float(mapping.get('MIN_GAME_TIME', cls.min_time)),
            max_time=float(mapping.get('MAX_GAME_TIME', cls.max_time)),
            plausibility_check_enabled=bool(mapping.get('PLAUSIBILITY_CHECK_ENABLED', True)),
        )

    def is_plausible(self, time_taken: float) -> bool:
        if not self.plausibility_check_enabled:
            return True
        return self.min_time <= time_taken <= self.max_time


@dataclass
class SessionResult:
    session: GameSession
    ranking_entry: Optional[object] = None


class SessionLedger:
    def __init__(self, config: Optional[LedgerConfig] = None,
                 clock: Callable = utcnow,
                 on_ranking_updated: Optional[Callable] = None):
        self.config = config or LedgerConfig()
        self.clock = clock
        self.on_ranking_updated = on_ranking_updated

    def start_session(self, device_type: str, user_agent: Optional[str] = None,
                      ip_address: Optional[str] = None) -> GameSession:
        if not device_type or device_type not in DEVICE_TYPES:
            raise InvalidInput(details=['Valid deviceType is required (mobile, desktop, tablet)'])
        session = GameSession(
            session_id=generate_session_id(),
            start_time=self.clock(),
            device_type=device_type,
            user_agent=user_agent[:512] if user_agent else None,
            ip_address=ip_address,
        )
        try:
            db.session.add(session)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreFailure(exc) from exc
        current_app.logger.info(f"[session-start] session={session.session_id} device={device_type}")
        return session

    def get_session(self, session_id: str) -> GameSession:
        try:
            session = GameSession.query.filter_by(session_id=session_id).first()
        except SQLAlchemyError as exc:
            raise StoreFailure(exc) from exc
        if session is None:
            raise NotFound()
        return session

    def end_session(self, session_id: str, time_taken: float, attempts: int, max_level: int,
                    username: Optional[str] = None) -> SessionResult:
        """Finalize a session and, when valid and named, update its ranking entry.

        Invalid sessions are still persisted so they stay auditable; they
        simply never reach the leaderboard.
        """
        is_valid = self.config.is_plausible(time_taken)
        now = self.clock()
        try:
            updated = (GameSession.query
                       .filter_by(session_id=session_id, is_completed=False)
                       .update({
                           'end_time': now,
                           'time_taken': time_taken,
                           'attempts': attempts,
                           'max_level': max_level,
                           'is_completed': True,
                           'is_valid': is_valid,
                           'updated_at': now,
                       }, synchronize_session=False))
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreFailure(exc) from exc

        if not updated:
            # Either unknown or another submission won the race
            self.get_session(session_id)
            current_app.logger.info(f"[session-end] session={session_id} rejected: already completed")
            raise AlreadyCompleted()

        session = self.get_session(session_id)
        current_app.logger.info(
            f"[session-end] session={session_id} time={time_taken} attempts={attempts} level={max_level} valid={is_valid}"
        )

        name = username.strip() if isinstance(username, str) else ''
        entry = None
        if name and session.is_valid:
            entry = ranking.upsert_score(
                username=name,
                device_type=session.device_type,
                time_taken=time_taken,
                attempts=attempts,
                max_level=max_level,
                session_id=session.session_id,
                is_valid=session.is_valid,
            )
            current_app.logger.info(
                f"[ranking-upsert] user={name} device={entry.device_type} best={entry.best_time_seconds} games={entry.total_games}"
            )
            if self.on_ranking_updated:
                self.on_ranking_updated(entry)
        return SessionResult(session=session, ranking_entry=entry)

    def stats(self) -> dict:
        """Aggregate counts and averages over all sessions."""
        try:
            total = GameSession.query.count()
            completed = GameSession.query.filter_by(is_completed=True).count()
            valid = GameSession.query.filter_by(is_completed=True, is_valid=True).count()
            per_device = (db.session.query(GameSession.device_type, func.count(GameSession.id))
                          .filter(GameSession.is_completed.is_(True), GameSession.is_valid.is_(True))
                          .group_by(GameSession.device_type)
                          .all())
            avg_time, avg_attempts = (db.session.query(func.avg(GameSession.time_taken),
                                                       func.avg(GameSession.attempts))
                                      .filter(GameSession.is_completed.is_(True), GameSession.is_valid.is_(True))
                                      .one())
        except SQLAlchemyError as exc:
            raise StoreFailure(exc) from exc
        return {
            'totalSessions': total,
            'completedSessions': completed,
            'validSessions': valid,
            'completionRate': round(completed / total * 100, 2) if total else 0,
            'validRate': round(valid / completed * 100, 2) if completed else 0,
            'deviceStats': {device: count for device, count in per_device},
            'averageTime': round(float(avg_time or 0), 2),
            'averageAttempts': round(float(avg_attempts or 0), 2),
        }


def ledger_for_app(flask_app=None) -> SessionLedger:
    """Build a ledger from the app's config, wired to the leaderboard push."""
    flask_app = flask_app or current_app
    from noclick.socketio_events import broadcast_leaderboard_update
    return SessionLedger(LedgerConfig.from_mapping(flask_app.config),
                         on_ranking_updated=broadcast_leaderboard_update)
