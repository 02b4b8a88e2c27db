"""Minimal learner account model.

Accounts, passwords and sessions belong to the surrounding platform. The
engine only needs to resolve ``current_user`` to a username, read the legacy
JSON progress fields and keep a running XP total for the leaderboard.
"""

from __future__ import annotations

from flask_login import UserMixin
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from ..core.extensions import db


class User(UserMixin, db.Model):
    """Application user model."""

    __tablename__ = 'users'

    user_id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    total_xp = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, server_default=func.now())

    # --- LEGACY FIELDS (read by the one-time tracker backfill) ---
    # flat list of dictionary entry ids
    personal_dictionary = db.Column(JSON, nullable=True)
    # {"<entry_id>": 37} (legacy scalar) or {"<entry_id>": {"beginner": .., ...}}
    word_progress = db.Column(JSON, nullable=True)
    # -------------------------------------------------------------

    def get_id(self):
        return str(self.user_id)

    def __repr__(self):
        return f'<User {self.username}>'
