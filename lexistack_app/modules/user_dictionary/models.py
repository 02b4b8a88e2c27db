from lexistack_app.core.extensions import db
from sqlalchemy.sql import func


class UserSavedSense(db.Model):
    """A learner's relationship to one sense ("my words")."""
    __tablename__ = 'user_saved_senses'

    STATUS_QUEUE = 'queue'
    STATUS_LEARNING = 'learning'
    STATUS_KNOWN = 'known'
    STATUS_HARD = 'hard'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, index=True)
    sense_id = db.Column(db.Integer, db.ForeignKey('dictionary_senses.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_QUEUE)
    source = db.Column(db.String(32), nullable=False, default='manual')
    added_at = db.Column(db.DateTime, nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=func.now())

    __table_args__ = (db.UniqueConstraint('username', 'sense_id', name='uq_user_saved_senses'),)

    def __repr__(self):
        return f'<UserSavedSense {self.username}:{self.sense_id} {self.status}>'


class UserSenseProgress(db.Model):
    """Per-track mastery scores, each clamped to 0..100."""
    __tablename__ = 'user_sense_progress'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, index=True)
    sense_id = db.Column(db.Integer, db.ForeignKey('dictionary_senses.id', ondelete='CASCADE'), nullable=False)
    beginner = db.Column(db.Integer, nullable=False, default=0)
    experienced = db.Column(db.Integer, nullable=False, default=0)
    expert = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime, nullable=False, server_default=func.now())

    __table_args__ = (db.UniqueConstraint('username', 'sense_id', name='uq_user_sense_progress'),)

    def to_dict(self):
        return {
            'beginner': self.beginner,
            'experienced': self.experienced,
            'expert': self.expert,
        }


class UserPhraseProgress(db.Model):
    """Saved collocations, usage patterns and derived-form cards."""
    __tablename__ = 'user_phrase_progress'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, index=True)
    item_type = db.Column(db.String(20), nullable=False)
    item_id = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='queue')
    source = db.Column(db.String(32), nullable=False, default='manual')
    added_at = db.Column(db.DateTime, nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        db.UniqueConstraint('username', 'item_type', 'item_id', name='uq_user_phrase_progress'),
    )


class UserCollectionState(db.Model):
    """Enrollment of a learner in a curated collection."""
    __tablename__ = 'user_collection_state'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, index=True)
    collection_id = db.Column(
        db.Integer, db.ForeignKey('dictionary_collections.id', ondelete='CASCADE'), nullable=False
    )
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.UniqueConstraint('username', 'collection_id', name='uq_user_collection_state'),
    )
