# File: lexistack_app/modules/user_dictionary/services/tracker_service.py
"""
Tracker Service
===============
Saved senses ("my words"), their status and the per-track mastery scores.

Every write is set-based: bulk operations resolve ids with one query and
insert/update with one statement, so enrolling a large collection costs the
same number of round trips as saving one word.
"""

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import case, func, or_, update

from lexistack_app.core.db_session import insert_ignore, utc_now
from lexistack_app.core.extensions import db
from lexistack_app.core.signals import track_progress_updated
from lexistack_app.models import DictionaryExample, DictionaryLemma, DictionarySense
from lexistack_app.services.config_service import get_runtime_config

from ..logics.progress_logic import (
    SCORE_MAX,
    SCORE_MIN,
    STATUS_QUEUE,
    VALID_STATUSES,
    clamp_int,
    is_learned,
    normalize_status,
    normalize_track,
    parse_id_list,
)
from ..models import UserSavedSense, UserSenseProgress
from .lookup_service import LookupService

logger = logging.getLogger(__name__)


def clean_username(username) -> str:
    return str(username or '').strip()


def iso(value) -> Optional[str]:
    return value.isoformat() if value else None


class TrackerService:
    """Personal state of one learner against the item store."""

    # ------------------------------------------------------------------
    # Saved senses
    # ------------------------------------------------------------------

    @staticmethod
    def add_saved_sense(username: str, sense_id, source: str = 'manual') -> Optional[Dict]:
        """Save a sense as ``queue``; re-saving only touches ``updated_at``."""
        user = clean_username(username)
        sid = clamp_int(sense_id, 0, 2 ** 31 - 1, 0)
        if not user or sid <= 0:
            return None
        if not LookupService.sense_exists(sid):
            logger.warning("add_saved_sense: unknown sense %s for %s, dropped", sid, user)
            return None

        now = utc_now()
        inserted = insert_ignore(
            db.session,
            UserSavedSense,
            {
                'username': user,
                'sense_id': sid,
                'status': STATUS_QUEUE,
                'source': str(source or 'manual'),
                'added_at': now,
                'updated_at': now,
            },
            ['username', 'sense_id'],
        )
        if not inserted:
            db.session.execute(
                update(UserSavedSense)
                .where(UserSavedSense.username == user, UserSavedSense.sense_id == sid)
                .values(updated_at=now)
            )
        db.session.commit()
        return {'senseId': sid}

    @staticmethod
    def add_saved_by_entry_id(username: str, lang: str, entry_id, source: str = 'manual') -> Optional[Dict]:
        link = LookupService.sense_ids_by_entry_ids(lang, [entry_id]).get(clamp_int(entry_id, 0, 2 ** 31 - 1, 0))
        if not link:
            logger.warning("add_saved_by_entry_id: entry %s (%s) has no linked sense", entry_id, lang)
            return None
        saved = TrackerService.add_saved_sense(username, link['senseId'], source)
        if saved is None:
            return None
        return {'senseId': link['senseId'], 'lemmaId': link['lemmaId']}

    @staticmethod
    def remove_saved_sense(username: str, sense_id) -> Dict:
        user = clean_username(username)
        sid = clamp_int(sense_id, 0, 2 ** 31 - 1, 0)
        if not user or sid <= 0:
            return {'ok': False}
        UserSavedSense.query.filter_by(username=user, sense_id=sid).delete(synchronize_session=False)
        db.session.commit()
        return {'ok': True}

    @staticmethod
    def remove_saved_by_entry_id(username: str, lang: str, entry_id) -> Dict:
        link = LookupService.sense_ids_by_entry_ids(lang, [entry_id]).get(clamp_int(entry_id, 0, 2 ** 31 - 1, 0))
        if not link:
            return {'ok': False}
        return TrackerService.remove_saved_sense(username, link['senseId'])

    @staticmethod
    def add_many_saved_senses(username: str, sense_ids: Iterable, source: str = 'collection',
                              commit: bool = True) -> Dict:
        """Save many senses at once; unknown ids are skipped, existing rows kept."""
        user = clean_username(username)
        if not user:
            return {'ok': False, 'inserted': 0}

        requested = parse_id_list(list(sense_ids or []))
        ids = LookupService.existing_sense_ids(requested)
        if len(ids) < len(requested):
            logger.warning(
                "add_many_saved_senses: %d unknown sense ids dropped for %s",
                len(requested) - len(ids), user,
            )
        if not ids:
            return {'ok': True, 'inserted': 0}

        now = utc_now()
        rows = [
            {
                'username': user,
                'sense_id': sid,
                'status': STATUS_QUEUE,
                'source': str(source or 'collection'),
                'added_at': now,
                'updated_at': now,
            }
            for sid in ids
        ]
        inserted = insert_ignore(db.session, UserSavedSense, rows, ['username', 'sense_id'])
        if commit:
            db.session.commit()
        return {'ok': True, 'inserted': inserted}

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @staticmethod
    def set_status(username: str, sense_id, status) -> Optional[Dict]:
        """Update the status of an already-saved sense. Returns ``None`` when not saved."""
        user = clean_username(username)
        sid = clamp_int(sense_id, 0, 2 ** 31 - 1, 0)
        if not user or sid <= 0:
            return None
        new_status = normalize_status(status)

        result = db.session.execute(
            update(UserSavedSense)
            .where(UserSavedSense.username == user, UserSavedSense.sense_id == sid)
            .values(status=new_status, updated_at=utc_now())
        )
        if not result.rowcount:
            db.session.rollback()
            return None

        from .collection_service import CollectionService
        CollectionService.refresh_completion(user, [sid])
        db.session.commit()
        return {'status': new_status}

    @staticmethod
    def set_status_many(username: str, sense_ids: Iterable, status) -> Dict:
        user = clean_username(username)
        new_status = normalize_status(status)
        ids = parse_id_list(list(sense_ids or []))
        if not user or not ids:
            return {'ok': bool(user), 'updated': 0, 'status': new_status}

        result = db.session.execute(
            update(UserSavedSense)
            .where(UserSavedSense.username == user, UserSavedSense.sense_id.in_(ids))
            .values(status=new_status, updated_at=utc_now())
        )
        updated = max(result.rowcount or 0, 0)

        from .collection_service import CollectionService
        CollectionService.refresh_completion(user, ids)
        db.session.commit()
        return {'ok': True, 'updated': updated, 'status': new_status}

    @staticmethod
    def get_sense_state(username: str, sense_id) -> Dict:
        user = clean_username(username)
        sid = clamp_int(sense_id, 0, 2 ** 31 - 1, 0)
        row = None
        if user and sid > 0:
            row = UserSavedSense.query.filter_by(username=user, sense_id=sid).first()
        if row is None:
            return {'isSaved': False, 'status': None}
        return {
            'isSaved': True,
            'status': row.status,
            'addedAt': iso(row.added_at),
            'updatedAt': iso(row.updated_at),
        }

    # ------------------------------------------------------------------
    # Track progress
    # ------------------------------------------------------------------

    @staticmethod
    def get_sense_progress(username: str, sense_id) -> Dict:
        user = clean_username(username)
        sid = clamp_int(sense_id, 0, 2 ** 31 - 1, 0)
        row = None
        if user and sid > 0:
            row = UserSenseProgress.query.filter_by(username=user, sense_id=sid).first()
        scores = row.to_dict() if row else {'beginner': 0, 'experienced': 0, 'expert': 0}
        scores['learned'] = is_learned(scores['beginner'], scores['experienced'])
        return scores

    @staticmethod
    def is_learned(username: str, sense_id) -> bool:
        return TrackerService.get_sense_progress(username, sense_id)['learned']

    @staticmethod
    def update_track_progress(username: str, sense_id, track: str, correct: bool) -> Optional[Dict]:
        """
        Move one track by +1 (correct) or -1 (wrong), clamped to 0..100.

        The row is created with zeros if missing, then changed by a single
        ``UPDATE ... SET track = CASE ...`` so concurrent answers on the same
        row serialise in the database instead of overwriting each other.
        """
        user = clean_username(username)
        sid = clamp_int(sense_id, 0, 2 ** 31 - 1, 0)
        track_name = normalize_track(track)
        if not user or sid <= 0 or track_name is None:
            return None
        if not LookupService.sense_exists(sid):
            logger.warning("update_track_progress: unknown sense %s for %s, dropped", sid, user)
            return None

        now = utc_now()
        insert_ignore(
            db.session,
            UserSenseProgress,
            {
                'username': user,
                'sense_id': sid,
                'beginner': 0,
                'experienced': 0,
                'expert': 0,
                'updated_at': now,
            },
            ['username', 'sense_id'],
        )

        column = getattr(UserSenseProgress, track_name)
        delta = 1 if correct else -1
        next_value = column + delta
        db.session.execute(
            update(UserSenseProgress)
            .where(UserSenseProgress.username == user, UserSenseProgress.sense_id == sid)
            .values({
                track_name: case(
                    (next_value > SCORE_MAX, SCORE_MAX),
                    (next_value < SCORE_MIN, SCORE_MIN),
                    else_=next_value,
                ),
                'updated_at': now,
            })
        )
        row = (
            db.session.query(UserSenseProgress)
            .filter_by(username=user, sense_id=sid)
            .populate_existing()
            .one()
        )
        scores = row.to_dict()
        db.session.commit()

        learned = is_learned(scores['beginner'], scores['experienced'])
        track_progress_updated.send(
            None,
            username=user,
            sense_id=sid,
            track=track_name,
            value=scores[track_name],
            learned=learned,
        )
        return {**scores, 'track': track_name, 'learned': learned}

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    @staticmethod
    def _saved_base_query(user: str, language_id: int):
        query = (
            db.session.query(UserSavedSense, UserSenseProgress, *LookupService.sense_card_columns())
            .select_from(UserSavedSense)
            .join(DictionarySense, DictionarySense.id == UserSavedSense.sense_id)
        )
        query = LookupService.join_sense_card(query)
        return (
            query.outerjoin(
                UserSenseProgress,
                db.and_(
                    UserSenseProgress.username == UserSavedSense.username,
                    UserSenseProgress.sense_id == UserSavedSense.sense_id,
                ),
            )
            .filter(UserSavedSense.username == user, DictionaryLemma.language_id == language_id)
        )

    @staticmethod
    def saved_item_to_dict(row) -> Dict:
        saved, progress = row[0], row[1]
        item = LookupService.card_to_dict(row)
        item.update({
            'status': saved.status,
            'source': saved.source,
            'addedAt': iso(saved.added_at),
            'updatedAt': iso(saved.updated_at),
            'beginner': progress.beginner if progress else 0,
            'experienced': progress.experienced if progress else 0,
            'expert': progress.expert if progress else 0,
        })
        return item

    @staticmethod
    def list_my_words(username: str, lang: str, q: str = '', status: str = 'all',
                      offset=0, limit=50) -> Dict:
        """Saved senses newest-first with optional status filter and text search."""
        user = clean_username(username)
        language_id = LookupService.get_language_id(lang)
        if not user or not language_id:
            return {'items': [], 'total': 0}

        max_limit = int(get_runtime_config('MY_WORDS_MAX_LIMIT', 200))
        offset = clamp_int(offset, 0, 1_000_000, 0)
        limit = clamp_int(limit, 1, max_limit, 50)
        raw_status = str(status or 'all').strip().lower()
        status_filter = 'all' if raw_status == 'all' else normalize_status(raw_status)
        needle = str(q or '').strip().lower()

        query = TrackerService._saved_base_query(user, language_id)
        if status_filter != 'all':
            query = query.filter(UserSavedSense.status == status_filter)
        if needle:
            pattern = f'%{needle}%'
            query = query.filter(or_(
                func.lower(DictionaryLemma.lemma).like(pattern),
                func.lower(DictionarySense.gloss).like(pattern),
                func.lower(func.coalesce(DictionaryExample.text, '')).like(pattern),
            ))

        total = query.order_by(None).count()
        rows = (
            query.order_by(
                UserSavedSense.updated_at.desc(),
                UserSavedSense.added_at.desc(),
                UserSavedSense.id.desc(),
            )
            .offset(offset)
            .limit(limit)
            .all()
        )
        return {'items': [TrackerService.saved_item_to_dict(row) for row in rows], 'total': total}

    @staticmethod
    def get_my_words_summary(username: str, lang: str) -> Dict[str, int]:
        summary = {'total': 0}
        summary.update({name: 0 for name in VALID_STATUSES})

        user = clean_username(username)
        language_id = LookupService.get_language_id(lang)
        if not user or not language_id:
            return summary

        rows = (
            db.session.query(UserSavedSense.status, func.count(UserSavedSense.id))
            .join(DictionarySense, DictionarySense.id == UserSavedSense.sense_id)
            .join(DictionaryLemma, DictionaryLemma.id == DictionarySense.lemma_id)
            .filter(UserSavedSense.username == user, DictionaryLemma.language_id == language_id)
            .group_by(UserSavedSense.status)
            .all()
        )
        for status, count in rows:
            key = str(status or '').strip().lower()
            if key in VALID_STATUSES:
                summary[key] = int(count)
                summary['total'] += int(count)
        return summary
