from datetime import datetime, timezone
import uuid

from noclick import db

DEVICE_TYPES = ('mobile', 'desktop', 'tablet')


def utcnow():
    return datetime.now(timezone.utc)


def generate_session_id():
    """Generate an opaque, globally unique session token."""
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


class GameSession(db.Model):
    __tablename__ = 'game_session'
    __table_args__ = (
        db.Index('ix_game_session_completed_valid', 'is_completed', 'is_valid'),
    )
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(64), unique=True, nullable=False, index=True, default=generate_session_id)
    start_time = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)
    time_taken = db.Column(db.Float, nullable=True, index=True)  # seconds
    attempts = db.Column(db.Integer, nullable=False, default=0)
    max_level = db.Column(db.Integer, nullable=False, default=1)
    device_type = db.Column(db.String(16), nullable=False)  # mobile, desktop, tablet
    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    is_valid = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'sessionId': self.session_id,
            'startTime': _iso(self.start_time),
            'endTime': _iso(self.end_time),
            'timeTaken': self.time_taken,
            'attempts': self.attempts,
            'maxLevel': self.max_level,
            'deviceType': self.device_type,
            'userAgent': self.user_agent,
            'isCompleted': self.is_completed,
            'isValid': self.is_valid,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


class RankingEntry(db.Model):
    __tablename__ = 'ranking_entry'
    __table_args__ = (
        db.UniqueConstraint('username', 'device_type', name='uq_ranking_entry_username_device'),
        db.Index('ix_ranking_entry_device_best_time', 'device_type', 'best_time_seconds'),
    )
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), nullable=False, index=True)
    device_type = db.Column(db.String(16), nullable=False)
    best_time_seconds = db.Column(db.Float, nullable=False, index=True)
    best_attempts = db.Column(db.Integer, nullable=False)
    max_level = db.Column(db.Integer, nullable=False, default=1)
    # Last contributing session, not necessarily the fastest one
    session_id = db.Column(db.String(64), nullable=False)
    total_games = db.Column(db.Integer, nullable=False, default=1)
    is_valid = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'username': self.username,
            'deviceType': self.device_type,
            'bestTime': self.best_time_seconds,
            'bestAttempts': self.best_attempts,
            'maxLevel': self.max_level,
            'sessionId': self.session_id,
            'totalGames': self.total_games,
            'isValid': self.is_valid,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }
