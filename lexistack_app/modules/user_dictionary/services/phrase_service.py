# File: lexistack_app/modules/user_dictionary/services/phrase_service.py
"""Saved collocations, usage patterns and derived-form cards."""

import logging
from typing import Dict, List, Optional

from sqlalchemy import update

from lexistack_app.core.db_session import insert_ignore, utc_now
from lexistack_app.core.extensions import db
from lexistack_app.models import (
    DictionaryCollocation,
    DictionaryForm,
    DictionaryFormCard,
    DictionaryLemma,
    DictionarySense,
    DictionaryUsagePattern,
)
from lexistack_app.services.config_service import get_runtime_config

from ..logics.progress_logic import PHRASE_ITEM_TYPES, clamp_int, normalize_status
from ..models import UserPhraseProgress
from .lookup_service import LookupService
from .tracker_service import clean_username, iso

logger = logging.getLogger(__name__)


def _normalize_item(item_type, item_id):
    kind = str(item_type or '').strip().lower()
    iid = clamp_int(item_id, 0, 2 ** 31 - 1, 0)
    if kind not in PHRASE_ITEM_TYPES or iid <= 0:
        return None, None
    return kind, iid


class PhraseService:

    @staticmethod
    def _describe(item_type: str, ids: List[int]) -> Dict[int, Dict]:
        """text / gloss / lemma / language for items of one type."""
        if not ids:
            return {}
        if item_type == 'collocation':
            rows = (
                db.session.query(
                    DictionaryCollocation.id, DictionaryCollocation.phrase, DictionaryCollocation.gloss,
                    DictionaryLemma.lemma, DictionaryLemma.language_id,
                )
                .join(DictionaryLemma, DictionaryLemma.id == DictionaryCollocation.lemma_id)
                .filter(DictionaryCollocation.id.in_(ids))
                .all()
            )
        elif item_type == 'pattern':
            rows = (
                db.session.query(
                    DictionaryUsagePattern.id, DictionaryUsagePattern.text, DictionaryUsagePattern.translation,
                    DictionaryLemma.lemma, DictionaryLemma.language_id,
                )
                .join(DictionarySense, DictionarySense.id == DictionaryUsagePattern.sense_id)
                .join(DictionaryLemma, DictionaryLemma.id == DictionarySense.lemma_id)
                .filter(DictionaryUsagePattern.id.in_(ids))
                .all()
            )
        else:
            rows = (
                db.session.query(
                    DictionaryFormCard.id, DictionaryFormCard.prompt, db.func.coalesce(DictionaryForm.form, ''),
                    DictionaryLemma.lemma, DictionaryLemma.language_id,
                )
                .join(DictionaryLemma, DictionaryLemma.id == DictionaryFormCard.lemma_id)
                .outerjoin(DictionaryForm, DictionaryForm.id == DictionaryFormCard.form_id)
                .filter(DictionaryFormCard.id.in_(ids))
                .all()
            )
        return {
            int(row[0]): {'text': row[1] or '', 'gloss': row[2] or '', 'lemma': row[3], 'languageId': row[4]}
            for row in rows
        }

    @staticmethod
    def item_exists(item_type: str, item_id: int) -> bool:
        return item_id in PhraseService._describe(item_type, [item_id])

    @staticmethod
    def add_phrase_progress(username: str, item_type, item_id, source: str = 'manual') -> Dict:
        user = clean_username(username)
        kind, iid = _normalize_item(item_type, item_id)
        if not user or kind is None:
            return {'ok': False}
        if not PhraseService.item_exists(kind, iid):
            logger.warning("add_phrase_progress: unknown %s %s for %s, dropped", kind, iid, user)
            return {'ok': False}

        now = utc_now()
        inserted = insert_ignore(
            db.session,
            UserPhraseProgress,
            {
                'username': user,
                'item_type': kind,
                'item_id': iid,
                'status': 'queue',
                'source': str(source or 'manual'),
                'added_at': now,
                'updated_at': now,
            },
            ['username', 'item_type', 'item_id'],
        )
        if not inserted:
            db.session.execute(
                update(UserPhraseProgress)
                .where(
                    UserPhraseProgress.username == user,
                    UserPhraseProgress.item_type == kind,
                    UserPhraseProgress.item_id == iid,
                )
                .values(updated_at=now)
            )
        db.session.commit()
        return {'ok': True}

    @staticmethod
    def remove_phrase_progress(username: str, item_type, item_id) -> Dict:
        user = clean_username(username)
        kind, iid = _normalize_item(item_type, item_id)
        if not user or kind is None:
            return {'ok': False}
        UserPhraseProgress.query.filter_by(username=user, item_type=kind, item_id=iid).delete(
            synchronize_session=False
        )
        db.session.commit()
        return {'ok': True}

    @staticmethod
    def set_phrase_status(username: str, item_type, item_id, status) -> Optional[Dict]:
        user = clean_username(username)
        kind, iid = _normalize_item(item_type, item_id)
        if not user or kind is None:
            return None
        new_status = normalize_status(status)
        result = db.session.execute(
            update(UserPhraseProgress)
            .where(
                UserPhraseProgress.username == user,
                UserPhraseProgress.item_type == kind,
                UserPhraseProgress.item_id == iid,
            )
            .values(status=new_status, updated_at=utc_now())
        )
        if not result.rowcount:
            db.session.rollback()
            return None
        db.session.commit()
        return {'status': new_status}

    @staticmethod
    def get_phrase_state(username: str, item_type, item_id) -> Dict:
        user = clean_username(username)
        kind, iid = _normalize_item(item_type, item_id)
        row = None
        if user and kind is not None:
            row = UserPhraseProgress.query.filter_by(username=user, item_type=kind, item_id=iid).first()
        if row is None:
            return {'isSaved': False, 'status': None}
        return {
            'isSaved': True,
            'status': row.status,
            'addedAt': iso(row.added_at),
            'updatedAt': iso(row.updated_at),
        }

    @staticmethod
    def list_my_phrases(username: str, lang: str, q: str = '', status: str = 'all',
                        offset=0, limit=50) -> Dict:
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

        query = UserPhraseProgress.query.filter_by(username=user)
        if status_filter != 'all':
            query = query.filter_by(status=status_filter)
        rows = query.order_by(
            UserPhraseProgress.updated_at.desc(),
            UserPhraseProgress.added_at.desc(),
            UserPhraseProgress.id.desc(),
        ).all()

        # Phrase lists are short; details are resolved per type in one query each.
        details = {}
        for kind in PHRASE_ITEM_TYPES:
            ids = [row.item_id for row in rows if row.item_type == kind]
            details[kind] = PhraseService._describe(kind, ids)

        items = []
        for row in rows:
            info = details.get(row.item_type, {}).get(row.item_id)
            if info is None or info['languageId'] != language_id:
                continue
            if needle and not any(needle in str(info[k] or '').lower() for k in ('text', 'gloss', 'lemma')):
                continue
            items.append({
                'itemType': row.item_type,
                'itemId': row.item_id,
                'text': info['text'],
                'gloss': info['gloss'],
                'lemma': info['lemma'],
                'status': row.status,
                'addedAt': iso(row.added_at),
                'updatedAt': iso(row.updated_at),
            })
        return {'items': items[offset:offset + limit], 'total': len(items)}
