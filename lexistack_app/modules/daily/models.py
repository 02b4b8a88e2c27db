from lexistack_app.core.extensions import db
from sqlalchemy.sql import func


class UserDailyHighlight(db.Model):
    """The one item picked for a learner on a server calendar day."""
    __tablename__ = 'user_daily_highlights'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False)
    lang_code = db.Column(db.String(10), nullable=False)
    day_key = db.Column(db.String(10), nullable=False)  # ISO date
    kind = db.Column(db.String(32), nullable=False, default='hard_word')
    sense_id = db.Column(db.Integer, db.ForeignKey('dictionary_senses.id', ondelete='CASCADE'), nullable=False)
    meta = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, server_default=func.now())

    __table_args__ = (
        db.UniqueConstraint('username', 'lang_code', 'day_key', 'kind', name='uq_user_daily_highlights'),
        db.Index('idx_user_daily_highlights_recent', 'username', 'lang_code', 'kind', 'day_key'),
    )
