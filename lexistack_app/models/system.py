"""Infrastructure tables that are not part of any learner-facing module."""

from __future__ import annotations

from ..core.extensions import db


class LockKey(db.Model):
    """Row-backed mutex used where the database has no advisory locks."""

    __tablename__ = 'lock_keys'

    lock_key = db.Column(db.String(191), primary_key=True)
    acquired_at = db.Column(db.DateTime, nullable=False)

    def __repr__(self):
        return f'<LockKey {self.lock_key}>'
