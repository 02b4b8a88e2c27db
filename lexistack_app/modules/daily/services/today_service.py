# File: lexistack_app/modules/daily/services/today_service.py
"""Today pack: due words, new words and the hard word of the day."""

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func, select

from lexistack_app.core.extensions import db
from lexistack_app.models import DictionaryEntry, DictionaryEntryLink, DictionaryLemma, DictionarySense
from lexistack_app.modules.user_dictionary.models import UserSavedSense, UserSenseProgress
from lexistack_app.modules.user_dictionary.services.tracker_service import TrackerService
from lexistack_app.services.config_service import get_runtime_config

from .highlight_service import HighlightService


class TodayService:

    @staticmethod
    def get_due(username: str, language_id: int, limit: int) -> List[Dict]:
        """Weakest unfinished words first (beginner + experienced), then most recently touched."""
        query = TrackerService._saved_base_query(username, language_id)
        rows = (
            query.filter(UserSavedSense.status != 'known')
            .order_by(
                (func.coalesce(UserSenseProgress.beginner, 0) + func.coalesce(UserSenseProgress.experienced, 0)).asc(),
                UserSavedSense.updated_at.desc(),
                UserSavedSense.id.desc(),
            )
            .limit(limit)
            .all()
        )
        return [TrackerService.saved_item_to_dict(row) for row in rows]

    @staticmethod
    def get_new(username: str, language_id: int, limit: int) -> List[Dict]:
        """Most frequent linked entries the learner has not saved yet."""
        saved = (
            select(UserSavedSense.sense_id)
            .join(DictionarySense, DictionarySense.id == UserSavedSense.sense_id)
            .join(DictionaryLemma, DictionaryLemma.id == DictionarySense.lemma_id)
            .where(UserSavedSense.username == username, DictionaryLemma.language_id == language_id)
        )
        query = (
            db.session.query(DictionaryEntry, DictionaryEntryLink.sense_id)
            .join(DictionaryEntryLink, DictionaryEntryLink.entry_id == DictionaryEntry.id)
            .filter(
                DictionaryEntry.language_id == language_id,
                DictionaryEntryLink.sense_id.notin_(saved),
            )
        )
        levels = [str(level) for level in (get_runtime_config('DAILY_NEW_LEVELS', []) or [])]
        if levels:
            query = query.filter(DictionaryEntry.level.in_(levels))

        rows = query.order_by(DictionaryEntry.frequency_rank.asc(), DictionaryEntry.id.asc()).limit(limit).all()
        return [
            {
                'entryId': entry.id,
                'senseId': int(sense_id),
                'lemma': entry.headword,
                'gloss': entry.gloss,
                'level': entry.level,
                'register': entry.register,
                'accent': entry.accent,
                'frequencyRank': entry.frequency_rank,
                'ipaUk': entry.ipa_uk,
                'ipaUs': entry.ipa_us,
                'example': entry.example,
                'exampleTranslation': entry.example_translation,
            }
            for entry, sense_id in rows
        ]

    @staticmethod
    def get_today_pack(username: str, lang: str, today: Optional[date] = None) -> Dict:
        from lexistack_app.modules.user_dictionary.interface import get_language_id

        user = str(username or '').strip()
        language_id = get_language_id(lang)
        if not user or not language_id:
            return {'due': [], 'new': [], 'hardOfDay': None}

        page_size = int(get_runtime_config('DAILY_PAGE_SIZE', 7))
        return {
            'due': TodayService.get_due(user, language_id, page_size),
            'new': TodayService.get_new(user, language_id, page_size),
            'hardOfDay': HighlightService.get_hard_word_of_day(user, lang, today=today),
        }
