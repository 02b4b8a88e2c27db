"""
Tests for applying content batches to the item store.

Tests cover:
- Insert vs update of flat entries (only supplied fields change)
- Rebuild of lemma / primary sense / main example / forms / entry link
- Skipped entries and duplicate headwords
- Language version bump
- Unknown language
"""

import pytest

from lexistack_app import db
from lexistack_app.models import (
    DictionaryEntry,
    DictionaryEntryLink,
    DictionaryExample,
    DictionaryForm,
    DictionaryLemma,
    DictionarySense,
    Language,
)
from lexistack_app.modules.sync import interface as sync
from lexistack_app.modules.sync.exceptions import SyncContentError
from lexistack_app.modules.sync.services.content_service import ContentService, lemma_key


@pytest.fixture
def english(app):
    language = Language(code='en', name='English')
    db.session.add(language)
    db.session.commit()
    return language


def _batch(entries, **extra):
    return {'lang': 'en', 'entries': entries, **extra}


class TestParseEntries:

    def test_skips_invalid_and_duplicate_entries(self):
        entries, skipped = ContentService.parse_entries([
            {'headword': '  take   off '},
            {'gloss': 'no headword'},
            'not an object',
            {'headword': 'run', 'frequencyRank': 'often'},
            {'headword': 'take off', 'gloss': 'second wins'},
        ])
        assert skipped == 4
        assert entries == [{'headword': 'take off', 'gloss': 'second wins'}]

    def test_normalises_level_and_register(self):
        entries, _ = ContentService.parse_entries([{'headword': 'go', 'level': ' b1 ', 'register': 'Formal'}])
        assert entries[0]['level'] == 'B1'
        assert entries[0]['register'] == 'formal'

    def test_lemma_key(self):
        assert lemma_key('  Take   Off ') == 'take off'


class TestApplyBatch:

    def test_insert_builds_normalized_rows(self, app, english):
        result = sync.apply_batch(_batch([{
            'headword': 'go',
            'gloss': 'move',
            'pos': 'verb',
            'level': 'A1',
            'frequencyRank': 20,
            'ipaUk': 'ɡəʊ',
            'example': 'Let us go.',
            'exampleTranslation': 'Đi nào.',
            'forms': [{'form': 'went', 'formType': 'past', 'isIrregular': True}, {'form': 'goes'}],
        }], actorUsername='editor'), 'req-1', 'pipeline')

        assert result['ok'] is True
        assert result['stats'] == {'inserted': 1, 'updated': 0, 'skipped': 0}
        assert result['contentVersion'] == 1
        assert result['source'] == 'pipeline'

        entry = DictionaryEntry.query.filter_by(headword='go').one()
        assert entry.updated_by == 'editor'
        assert result['version'] == f'{entry.id}_1'

        lemma = DictionaryLemma.query.filter_by(lemma_key='go').one()
        assert (lemma.pos, lemma.frequency_rank, lemma.ipa_uk) == ('verb', 20, 'ɡəʊ')
        sense = DictionarySense.query.filter_by(lemma_id=lemma.id, sense_no=1).one()
        assert (sense.gloss, sense.level) == ('move', 'A1')

        example = DictionaryExample.query.filter_by(sense_id=sense.id, is_main=True).one()
        assert example.translation == 'Đi nào.'

        forms = {f.form: (f.form_type, f.is_irregular) for f in DictionaryForm.query.filter_by(lemma_id=lemma.id)}
        assert forms == {'went': ('past', True), 'goes': ('', False)}

        link = DictionaryEntryLink.query.filter_by(entry_id=entry.id).one()
        assert (link.lemma_id, link.sense_id) == (lemma.id, sense.id)

    def test_update_changes_only_supplied_fields(self, app, english):
        sync.apply_batch(_batch([{
            'headword': 'go', 'gloss': 'move', 'level': 'A1', 'example': 'Let us go.',
            'forms': [{'form': 'went', 'isIrregular': True}],
        }]), 'req-1', 's')
        result = sync.apply_batch(_batch([{'headword': 'go', 'level': 'A2'}, {'headword': 'run'}]), 'req-2', 's')

        assert result['stats'] == {'inserted': 1, 'updated': 1, 'skipped': 0}
        assert result['contentVersion'] == 2

        entry = DictionaryEntry.query.filter_by(headword='go').one()
        assert (entry.gloss, entry.level) == ('move', 'A2')

        # Forms were not supplied the second time, so they are kept.
        lemma = DictionaryLemma.query.filter_by(lemma_key='go').one()
        assert [f.form for f in DictionaryForm.query.filter_by(lemma_id=lemma.id)] == ['went']
        assert DictionarySense.query.filter_by(lemma_id=lemma.id).count() == 1
        assert DictionaryEntryLink.query.count() == 2

    def test_forms_are_replaced_when_supplied(self, app, english):
        sync.apply_batch(_batch([{'headword': 'go', 'forms': [{'form': 'went'}, {'form': 'gone'}]}]), 'r1', 's')
        sync.apply_batch(_batch([{'headword': 'go', 'forms': [{'form': 'gone', 'isIrregular': True}]}]), 'r2', 's')

        forms = DictionaryForm.query.all()
        assert [(f.form, f.is_irregular) for f in forms] == [('gone', True)]

    def test_example_removed_when_cleared(self, app, english):
        sync.apply_batch(_batch([{'headword': 'go', 'example': 'Go!'}]), 'r1', 's')
        sync.apply_batch(_batch([{'headword': 'go', 'example': ''}]), 'r2', 's')
        assert DictionaryExample.query.count() == 0

    def test_all_invalid_entries_still_succeed(self, app, english):
        result = sync.apply_batch(_batch([{'gloss': 'x'}]), 'r1', 's')
        assert result['stats'] == {'inserted': 0, 'updated': 0, 'skipped': 1}
        assert db.session.get(Language, english.id).version == '0_0'

    def test_unknown_language_raises(self, app, english):
        with pytest.raises(SyncContentError):
            sync.apply_batch({'lang': 'zz', 'entries': [{'headword': 'x'}]}, 'r1', 's')
        assert DictionaryEntry.query.count() == 0
