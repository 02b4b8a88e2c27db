# File: lexistack_app/modules/daily/services/highlight_service.py
"""
Highlight Service
=================
Hard word of the day: one deterministic pick per (user, language, day).

The pick is persisted with insert-or-ignore on the daily key; whoever loses
a concurrent race re-reads the stored row instead of trusting its own pick.
"""

import logging
from datetime import date
from typing import Dict, Optional

from sqlalchemy import select

from lexistack_app.core.db_session import insert_ignore
from lexistack_app.core.extensions import db
from lexistack_app.models import DictionaryForm, DictionaryLemma, DictionarySense
from lexistack_app.modules.user_dictionary.models import UserSavedSense
from lexistack_app.modules.user_dictionary.services.lookup_service import LookupService
from lexistack_app.services.config_service import get_runtime_config
from lexistack_app.utils.time_utils import day_key as to_day_key
from lexistack_app.utils.time_utils import server_today, shift_days

from ..logics.selection import (
    KIND_HARD_WORD,
    Candidate,
    classify,
    highlight_seed,
    order_candidates,
    pick,
)
from ..models import UserDailyHighlight

logger = logging.getLogger(__name__)


class HighlightService:

    @staticmethod
    def _stored(username: str, lang: str, key: str, kind: str) -> Optional[UserDailyHighlight]:
        return (
            UserDailyHighlight.query
            .filter_by(username=username, lang_code=lang, day_key=key, kind=kind)
            .populate_existing()
            .first()
        )

    @staticmethod
    def _to_payload(highlight: UserDailyHighlight) -> Optional[Dict]:
        query = db.session.query(*LookupService.sense_card_columns()).select_from(DictionarySense)
        row = LookupService.join_sense_card(query).filter(DictionarySense.id == highlight.sense_id).first()
        if row is None:
            return None
        meta = highlight.meta if isinstance(highlight.meta, dict) else {}
        payload = LookupService.card_to_dict(row)
        payload.update({
            'dayKey': highlight.day_key,
            'difficultyType': str(meta.get('difficultyType') or 'grammar'),
            'difficultyHint': str(meta.get('difficultyHint') or 'Hard word'),
        })
        return payload

    @staticmethod
    def build_candidates(username: str, lang: str, language_id: int, today: date):
        """Hard primary senses from the frequency head, minus known and recently shown ones."""
        top_n = int(get_runtime_config('HARD_WORD_TOP_N', 2000))
        window = int(get_runtime_config('HARD_WORD_REPEAT_WINDOW_DAYS', 14))
        limit = int(get_runtime_config('HARD_WORD_CANDIDATE_LIMIT', 400))
        min_level = get_runtime_config('HARD_WORD_MIN_LEVEL', 'A2')
        formal = get_runtime_config('HARD_WORD_FORMAL_REGISTERS', ['formal'])

        known = (
            select(UserSavedSense.sense_id)
            .where(UserSavedSense.username == username, UserSavedSense.status == 'known')
        )
        recent = (
            select(UserDailyHighlight.sense_id)
            .where(
                UserDailyHighlight.username == username,
                UserDailyHighlight.lang_code == lang,
                UserDailyHighlight.kind == KIND_HARD_WORD,
                UserDailyHighlight.day_key >= to_day_key(shift_days(today, -window)),
            )
        )
        irregular = (
            select(DictionaryForm.lemma_id)
            .where(DictionaryForm.is_irregular.is_(True))
        )

        rows = (
            db.session.query(
                DictionarySense.id,
                DictionarySense.level,
                DictionarySense.register,
                DictionaryLemma.frequency_rank,
                DictionaryLemma.ipa_uk,
                DictionaryLemma.ipa_us,
                DictionaryLemma.id.in_(irregular).label('has_irregular'),
            )
            .join(DictionaryLemma, DictionaryLemma.id == DictionarySense.lemma_id)
            .filter(
                DictionaryLemma.language_id == language_id,
                DictionarySense.sense_no == 1,
                DictionaryLemma.frequency_rank <= top_n,
                DictionarySense.id.notin_(known),
                DictionarySense.id.notin_(recent),
            )
            .all()
        )

        candidates = [
            Candidate(
                sense_id=int(row.id),
                frequency_rank=int(row.frequency_rank),
                hardness=classify(
                    row.level, row.register, row.ipa_uk, row.ipa_us, bool(row.has_irregular),
                    min_level=min_level, formal_registers=formal,
                ),
            )
            for row in rows
        ]
        return order_candidates(candidates, limit)

    @staticmethod
    def get_hard_word_of_day(username: str, lang: str, today: Optional[date] = None) -> Optional[Dict]:
        user = str(username or '').strip()
        lang_code = str(lang or '').strip()
        language_id = LookupService.get_language_id(lang_code)
        if not user or not language_id:
            return None

        today = today or server_today()
        key = to_day_key(today)

        stored = HighlightService._stored(user, lang_code, key, KIND_HARD_WORD)
        if stored is not None:
            return HighlightService._to_payload(stored)

        candidates = HighlightService.build_candidates(user, lang_code, language_id, today)
        chosen = pick(highlight_seed(user, lang_code, key), candidates)
        if chosen is None:
            return None

        insert_ignore(
            db.session,
            UserDailyHighlight,
            {
                'username': user,
                'lang_code': lang_code,
                'day_key': key,
                'kind': KIND_HARD_WORD,
                'sense_id': chosen.sense_id,
                'meta': {
                    'difficultyType': chosen.hardness.difficulty_type,
                    'difficultyHint': chosen.hardness.difficulty_hint,
                },
            },
            ['username', 'lang_code', 'day_key', 'kind'],
        )
        db.session.commit()

        # Re-read: a concurrent caller may have stored its pick first.
        stored = HighlightService._stored(user, lang_code, key, KIND_HARD_WORD)
        if stored is None:
            return None
        if stored.sense_id != chosen.sense_id:
            logger.info("Hard word for %s/%s on %s was stored concurrently, reusing it", user, lang_code, key)
        return HighlightService._to_payload(stored)
