# File: lexistack_app/modules/user_dictionary/services/lookup_service.py
"""Read-only helpers resolving item-store identifiers for the tracker."""

from typing import Dict, Iterable, List, Optional

from lexistack_app.core.extensions import db
from lexistack_app.models import (
    DictionaryEntry,
    DictionaryEntryLink,
    DictionaryExample,
    DictionaryLemma,
    DictionarySense,
    Language,
)

from ..logics.progress_logic import parse_id_list


class LookupService:
    """Language, sense and entry-link resolution."""

    @staticmethod
    def get_language(lang_code: str) -> Optional[Language]:
        code = str(lang_code or '').strip()
        if not code:
            return None
        return Language.query.filter_by(code=code).first()

    @staticmethod
    def get_language_id(lang_code: str) -> Optional[int]:
        language = LookupService.get_language(lang_code)
        return language.id if language else None

    @staticmethod
    def existing_sense_ids(sense_ids: Iterable) -> List[int]:
        """Subset of ``sense_ids`` that exist, in the caller's order."""
        ids = parse_id_list(list(sense_ids or []))
        if not ids:
            return []
        rows = db.session.query(DictionarySense.id).filter(DictionarySense.id.in_(ids)).all()
        found = {row.id for row in rows}
        return [sid for sid in ids if sid in found]

    @staticmethod
    def sense_exists(sense_id) -> bool:
        return bool(LookupService.existing_sense_ids([sense_id]))

    @staticmethod
    def sense_ids_by_entry_ids(lang_code: str, entry_ids: Iterable) -> Dict[int, Dict[str, int]]:
        """Map flat entry ids to ``{"senseId", "lemmaId"}`` through the entry links."""
        language_id = LookupService.get_language_id(lang_code)
        ids = parse_id_list(list(entry_ids or []))
        if not language_id or not ids:
            return {}

        rows = (
            db.session.query(
                DictionaryEntryLink.entry_id,
                DictionaryEntryLink.sense_id,
                DictionaryEntryLink.lemma_id,
            )
            .join(DictionaryEntry, DictionaryEntry.id == DictionaryEntryLink.entry_id)
            .join(DictionarySense, DictionarySense.id == DictionaryEntryLink.sense_id)
            .filter(DictionaryEntry.language_id == language_id, DictionaryEntry.id.in_(ids))
            .all()
        )
        return {
            int(row.entry_id): {'senseId': int(row.sense_id), 'lemmaId': int(row.lemma_id)}
            for row in rows
        }

    @staticmethod
    def sense_card_columns():
        """Columns every sense listing returns, for queries joining lemma + main example."""
        return (
            DictionarySense.id.label('sense_id'),
            DictionarySense.lemma_id.label('lemma_id'),
            DictionaryLemma.lemma.label('lemma'),
            DictionarySense.gloss.label('gloss'),
            DictionarySense.level.label('level'),
            DictionarySense.register.label('register'),
            DictionaryLemma.frequency_rank.label('frequency_rank'),
            DictionaryLemma.ipa_uk.label('ipa_uk'),
            DictionaryLemma.ipa_us.label('ipa_us'),
            db.func.coalesce(DictionaryExample.text, '').label('example'),
            db.func.coalesce(DictionaryExample.translation, '').label('example_translation'),
        )

    @staticmethod
    def join_sense_card(query):
        """Join lemma and main example onto a query already selecting from senses."""
        return (
            query.join(DictionaryLemma, DictionaryLemma.id == DictionarySense.lemma_id)
            .outerjoin(
                DictionaryExample,
                db.and_(DictionaryExample.sense_id == DictionarySense.id, DictionaryExample.is_main.is_(True)),
            )
        )

    @staticmethod
    def card_to_dict(row) -> Dict:
        return {
            'senseId': int(row.sense_id),
            'lemmaId': int(row.lemma_id),
            'lemma': row.lemma,
            'gloss': row.gloss,
            'level': row.level,
            'register': row.register,
            'frequencyRank': int(row.frequency_rank) if row.frequency_rank is not None else None,
            'ipaUk': row.ipa_uk or '',
            'ipaUs': row.ipa_us or '',
            'example': row.example or '',
            'exampleTranslation': row.example_translation or '',
        }
