# File: lexistack_app/modules/user_dictionary/services/migration_service.py
"""
Legacy Migration Service
========================
Older clients kept "my words" as ``users.personal_dictionary`` (a list of
flat entry ids) and scores as ``users.word_progress`` (entry id -> scalar or
per-track object). These helpers move that data into the tracker tables.

Both operations only ever add or overwrite progress; they never delete saved
senses, because the legacy lists may be stale.
"""

import logging
from typing import Any, Dict, List

from lexistack_app.core.db_session import upsert, utc_now
from lexistack_app.core.extensions import db
from lexistack_app.models import User

from ..logics.progress_logic import iter_progress_rows, normalize_word_progress, parse_id_list
from ..models import UserSavedSense, UserSenseProgress
from .lookup_service import LookupService
from .tracker_service import TrackerService, clean_username

logger = logging.getLogger(__name__)


class MigrationService:

    @staticmethod
    def has_tracked_rows(username: str) -> bool:
        return (
            db.session.query(UserSavedSense.id).filter_by(username=username).first() is not None
            or db.session.query(UserSenseProgress.id).filter_by(username=username).first() is not None
        )

    @staticmethod
    def _save_entries(username: str, lang: str, entry_ids: Any) -> int:
        ids = parse_id_list(entry_ids if isinstance(entry_ids, list) else [])
        links = LookupService.sense_ids_by_entry_ids(lang, ids)
        if len(links) < len(ids):
            logger.warning(
                "Legacy dictionary of %s: %d entry ids without a linked sense, dropped",
                username, len(ids) - len(links),
            )
        sense_ids = [links[eid]['senseId'] for eid in ids if eid in links]
        result = TrackerService.add_many_saved_senses(username, sense_ids, 'legacy', commit=False)
        return result['inserted']

    @staticmethod
    def _write_progress(username: str, lang: str, word_progress: Any) -> int:
        if not isinstance(word_progress, dict) or not word_progress:
            return 0
        pairs = list(iter_progress_rows(word_progress))
        links = LookupService.sense_ids_by_entry_ids(lang, [entry_id for entry_id, _ in pairs])

        now = utc_now()
        by_sense: Dict[int, Dict] = {}
        for entry_id, scores in pairs:
            link = links.get(entry_id)
            if not link:
                continue
            by_sense[link['senseId']] = {
                'username': username,
                'sense_id': link['senseId'],
                **scores.to_dict(),
                'updated_at': now,
            }
        missing = sum(1 for entry_id, _ in pairs if entry_id not in links)
        if missing:
            logger.warning(
                "Legacy progress of %s: %d entries without a linked sense, dropped",
                username, missing,
            )

        rows: List[Dict] = list(by_sense.values())
        upsert(
            db.session,
            UserSenseProgress,
            rows,
            ['username', 'sense_id'],
            ['beginner', 'experienced', 'expert', 'updated_at'],
        )
        return len(rows)

    @staticmethod
    def _normalize_user_progress(user: User) -> None:
        """Persist the per-track shape of ``word_progress`` back on the account."""
        normalized, changed = normalize_word_progress(user.word_progress)
        if changed:
            user.word_progress = normalized

    @staticmethod
    def ensure_backfilled(username: str, lang: str) -> Dict:
        """One-time import of the legacy fields; a no-op once any tracker row exists."""
        user_name = clean_username(username)
        if not user_name:
            return {'ok': False, 'reason': 'no-username'}
        if MigrationService.has_tracked_rows(user_name):
            return {'ok': True, 'migrated': False}

        user = User.query.filter_by(username=user_name).first()
        if user is None:
            return {'ok': False, 'reason': 'no-user'}

        saved = MigrationService._save_entries(user_name, lang, user.personal_dictionary)
        progress = MigrationService._write_progress(user_name, lang, user.word_progress)
        MigrationService._normalize_user_progress(user)
        db.session.commit()

        if saved or progress:
            logger.info(
                "Backfilled tracker for %s (%s): %d saved senses, %d progress rows",
                user_name, lang, saved, progress,
            )
        return {'ok': True, 'migrated': True, 'savedSenses': saved, 'progressRows': progress}

    @staticmethod
    def sync_from_legacy_patch(username: str, lang: str, patch: Dict) -> Dict:
        """Mirror a legacy ``{personalDictionary, wordProgress}`` profile patch into the tracker."""
        user_name = clean_username(username)
        if not user_name:
            return {'ok': False, 'reason': 'no-username'}
        patch = patch if isinstance(patch, dict) else {}

        saved = 0
        progress = 0
        if 'personalDictionary' in patch:
            saved = MigrationService._save_entries(user_name, lang, patch.get('personalDictionary'))

        word_progress = patch.get('wordProgress')
        if isinstance(word_progress, dict):
            progress = MigrationService._write_progress(user_name, lang, word_progress)
            user = User.query.filter_by(username=user_name).first()
            if user is not None:
                merged = dict(user.word_progress or {}) if isinstance(user.word_progress, dict) else {}
                merged.update(normalize_word_progress(word_progress)[0])
                user.word_progress = merged
                MigrationService._normalize_user_progress(user)

        db.session.commit()
        return {'ok': True, 'savedSenses': saved, 'progressRows': progress}
