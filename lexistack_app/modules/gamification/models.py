from lexistack_app.core.extensions import db
from sqlalchemy.sql import func


class UserActiveDay(db.Model):
    """Active-day streak of one learner (one row per username)."""
    __tablename__ = 'user_active_days'

    username = db.Column(db.String(255), primary_key=True)
    last_active_date = db.Column(db.Date, nullable=True)
    streak_days = db.Column(db.Integer, nullable=False, default=0)
    max_streak = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime, server_default=func.now())

    def to_dict(self):
        return {
            'lastActiveDate': self.last_active_date.isoformat() if self.last_active_date else None,
            'streakDays': max(0, self.streak_days or 0),
            'maxStreak': max(0, self.max_streak or 0),
        }


class Reward(db.Model):
    """Configurable reward for a gamification event, e.g. ``active_day -> {"xp": 10}``."""
    __tablename__ = 'rewards'

    id = db.Column(db.Integer, primary_key=True)
    reward_key = db.Column(db.String(64), unique=True, nullable=False)
    config = db.Column(db.JSON, nullable=True)
    description = db.Column(db.String(255))

    def __repr__(self):
        return f'<Reward {self.reward_key}>'


class ScoreLog(db.Model):
    """XP ledger; leaderboards sum it per period."""
    __tablename__ = 'score_logs'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, nullable=False, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'amount': self.amount,
            'reason': self.reason,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
