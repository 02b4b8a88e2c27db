# File: lexistack_app/modules/sync/services/content_service.py
"""
Content Service
===============
Applies a content batch to the item store.

1. upsert the flat ``dictionary_entries`` rows (only the fields each entry carries)
2. rebuild the lemma / primary sense / main example / forms / entry link
   of every touched entry from its flat row
3. bump the language's version so clients drop cached content
"""

import logging
from typing import Dict, Iterable, List, Tuple

from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy import func

from lexistack_app.core.db_session import utc_now
from lexistack_app.core.extensions import db
from lexistack_app.models import (
    DictionaryEntry,
    DictionaryEntryLink,
    DictionaryExample,
    DictionaryForm,
    DictionaryFormCard,
    DictionaryLemma,
    DictionarySense,
    Language,
)

from ..exceptions import SyncContentError
from ..schemas import SyncEntrySchema

logger = logging.getLogger(__name__)

_entry_schema = SyncEntrySchema()


def lemma_key(headword: str) -> str:
    return ' '.join(str(headword or '').split()).lower()


class ContentService:

    @staticmethod
    def parse_entries(raw_entries: Iterable) -> Tuple[List[Dict], int]:
        """Validate raw entries; invalid ones are counted as skipped. Later duplicates win."""
        by_headword: Dict[str, Dict] = {}
        skipped = 0
        for raw in raw_entries or []:
            if not isinstance(raw, dict):
                skipped += 1
                continue
            try:
                entry = _entry_schema.load(raw)
            except SchemaValidationError as e:
                skipped += 1
                logger.warning("Skipping sync entry %r: %s", raw.get('headword'), e.messages)
                continue
            entry['headword'] = ' '.join(entry['headword'].split())
            if not entry['headword']:
                skipped += 1
                continue
            if 'level' in entry:
                entry['level'] = entry['level'].strip().upper() or 'A0'
            if 'register' in entry:
                entry['register'] = entry['register'].strip().lower() or 'neutral'
            if by_headword.pop(entry['headword'], None) is not None:
                skipped += 1
            by_headword[entry['headword']] = entry
        return list(by_headword.values()), skipped

    @staticmethod
    def upsert_entries(language: Language, entries: List[Dict], actor: str = None) -> Tuple[List[DictionaryEntry], Dict]:
        stats = {'inserted': 0, 'updated': 0}
        if not entries:
            return [], stats

        headwords = [entry['headword'] for entry in entries]
        existing = {
            row.headword: row
            for row in DictionaryEntry.query.filter(
                DictionaryEntry.language_id == language.id,
                DictionaryEntry.headword.in_(headwords),
            )
        }

        now = utc_now()
        touched = []
        for entry in entries:
            row = existing.get(entry['headword'])
            if row is None:
                row = DictionaryEntry(language_id=language.id, headword=entry['headword'])
                db.session.add(row)
                stats['inserted'] += 1
            else:
                stats['updated'] += 1
            for field, value in entry.items():
                if field != 'headword':
                    setattr(row, field, value)
            row.updated_by = actor
            row.updated_at = now
            touched.append(row)

        db.session.flush()
        return touched, stats

    @staticmethod
    def _sync_forms(lemma: DictionaryLemma, forms: List[Dict]) -> None:
        current = {form.form: form for form in DictionaryForm.query.filter_by(lemma_id=lemma.id)}
        wanted = {}
        for item in forms:
            text = ' '.join(str(item.get('form') or '').split())
            if text:
                wanted[text] = item

        stale_ids = [form.id for text, form in current.items() if text not in wanted]
        if stale_ids:
            DictionaryFormCard.query.filter(DictionaryFormCard.form_id.in_(stale_ids)).delete(synchronize_session=False)
            DictionaryForm.query.filter(DictionaryForm.id.in_(stale_ids)).delete(synchronize_session=False)

        for text, item in wanted.items():
            form = current.get(text)
            if form is None:
                form = DictionaryForm(lemma_id=lemma.id, form=text)
                db.session.add(form)
            form.form_type = str(item.get('form_type') or '')
            form.is_irregular = bool(item.get('is_irregular'))

    @staticmethod
    def resync_normalized(language: Language, entries: List[DictionaryEntry]) -> None:
        """Rebuild the normalised rows the learner engine reads from the flat entries."""
        now = utc_now()
        for entry in entries:
            key = lemma_key(entry.headword)
            lemma = DictionaryLemma.query.filter_by(language_id=language.id, lemma_key=key).first()
            if lemma is None:
                lemma = DictionaryLemma(language_id=language.id, lemma_key=key)
                db.session.add(lemma)
            lemma.lemma = entry.headword
            lemma.pos = entry.pos or ''
            lemma.frequency_rank = entry.frequency_rank or 15000
            lemma.ipa_uk = entry.ipa_uk or ''
            lemma.ipa_us = entry.ipa_us or ''
            lemma.updated_at = now
            db.session.flush()

            sense = DictionarySense.query.filter_by(lemma_id=lemma.id, sense_no=1).first()
            if sense is None:
                sense = DictionarySense(lemma_id=lemma.id, sense_no=1)
                db.session.add(sense)
            sense.level = entry.level or 'A0'
            sense.register = entry.register or 'neutral'
            sense.gloss = entry.gloss or ''
            sense.updated_at = now
            db.session.flush()

            example = DictionaryExample.query.filter_by(sense_id=sense.id, is_main=True).first()
            if entry.example:
                if example is None:
                    example = DictionaryExample(sense_id=sense.id, is_main=True)
                    db.session.add(example)
                example.text = entry.example
                example.translation = entry.example_translation or ''
            elif example is not None:
                db.session.delete(example)

            if entry.forms is not None:
                ContentService._sync_forms(lemma, entry.forms)

            link = DictionaryEntryLink.query.filter_by(entry_id=entry.id).first()
            if link is None:
                link = DictionaryEntryLink(entry_id=entry.id)
                db.session.add(link)
            link.lemma_id = lemma.id
            link.sense_id = sense.id

        db.session.flush()

    @staticmethod
    def bump_version(language: Language) -> str:
        """``version`` = "<max entry id>_<entry count>"; ``content_version`` counts applied batches."""
        max_id, count = (
            db.session.query(func.coalesce(func.max(DictionaryEntry.id), 0), func.count(DictionaryEntry.id))
            .filter(DictionaryEntry.language_id == language.id)
            .one()
        )
        language.version = f'{int(max_id)}_{int(count)}'
        language.content_version = (language.content_version or 0) + 1
        return language.version

    @staticmethod
    def apply_batch(payload: Dict, request_id: str, source: str) -> Dict:
        """Apply one batch in a single transaction and return the job result."""
        payload = payload if isinstance(payload, dict) else {}
        lang = str(payload.get('lang') or 'en').strip() or 'en'
        src = str(payload.get('source') or source or 'unknown').strip() or 'unknown'
        actor = str(payload.get('actorUsername') or '').strip() or None

        language = Language.query.filter_by(code=lang).first()
        if language is None:
            raise SyncContentError(f"Unknown language '{lang}'")

        try:
            entries, skipped = ContentService.parse_entries(payload.get('entries'))
            touched, stats = ContentService.upsert_entries(language, entries, actor)
            ContentService.resync_normalized(language, touched)
            version = ContentService.bump_version(language)
            content_version = language.content_version
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        stats['skipped'] = skipped
        return {
            'ok': True,
            'source': src,
            'lang': lang,
            'requestId': request_id,
            'contentVersion': content_version,
            'version': version,
            'stats': stats,
        }
