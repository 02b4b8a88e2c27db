import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from lexistack_app import create_app, db
from lexistack_app.config import Config
from lexistack_app.models import (
    DictionaryCollection,
    DictionaryCollectionItem,
    DictionaryCollocation,
    DictionaryEntry,
    DictionaryEntryLink,
    DictionaryExample,
    DictionaryForm,
    DictionaryLemma,
    DictionarySense,
    Language,
    User,
)

SYNC_SECRET = 'test-sync-secret'


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'check_same_thread': False}
    }
    WTF_CSRF_ENABLED = False
    SYNC_WORKER_ENABLED = False
    SYNC_SHARED_SECRET = SYNC_SECRET
    SERVER_TIMEZONE = 'UTC'
    LOG_LEVEL = 'WARNING'


@pytest.fixture
def app(tmp_path):
    class _Config(TestConfig):
        LOG_DIR = str(tmp_path / 'logs')

    app = create_app(_Config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def file_app(tmp_path):
    """App on a SQLite file so several threads can open their own connections."""

    class _Config(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'concurrency.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {
            'connect_args': {'check_same_thread': False, 'timeout': 30}
        }
        LOG_DIR = str(tmp_path / 'logs')

    app = create_app(_Config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id):
    with client.session_transaction() as session:
        session['_user_id'] = str(user_id)
        session['_fresh'] = True


def make_word(language, headword, *, rank, level='A1', register='neutral', gloss='',
              ipa_uk='', ipa_us='', example='', irregular_form=None):
    """Create entry + lemma + primary sense + link the way a sync would."""
    entry = DictionaryEntry(
        language_id=language.id,
        headword=headword,
        gloss=gloss or f'{headword} (gloss)',
        level=level,
        frequency_rank=rank,
        register=register,
        ipa_uk=ipa_uk,
        ipa_us=ipa_us,
        example=example,
    )
    lemma = DictionaryLemma(
        language_id=language.id,
        lemma_key=headword.lower(),
        lemma=headword,
        frequency_rank=rank,
        ipa_uk=ipa_uk,
        ipa_us=ipa_us,
    )
    db.session.add_all([entry, lemma])
    db.session.flush()

    sense = DictionarySense(lemma_id=lemma.id, sense_no=1, level=level, register=register,
                            gloss=entry.gloss)
    db.session.add(sense)
    db.session.flush()

    if example:
        db.session.add(DictionaryExample(sense_id=sense.id, text=example, is_main=True))
    if irregular_form:
        db.session.add(DictionaryForm(lemma_id=lemma.id, form=irregular_form, form_type='past',
                                      is_irregular=True))
    db.session.add(DictionaryEntryLink(entry_id=entry.id, lemma_id=lemma.id, sense_id=sense.id))
    db.session.flush()
    return {'entry_id': entry.id, 'lemma_id': lemma.id, 'sense_id': sense.id}


@pytest.fixture
def dictionary_data(app):
    """Small English dictionary, two learners and one public collection."""
    english = Language(code='en', name='English')
    german = Language(code='de', name='German')
    db.session.add_all([english, german])
    db.session.flush()

    words = {
        'house': make_word(english, 'house', rank=10, level='A1', example='A big house.'),
        'go': make_word(english, 'go', rank=20, level='A1', irregular_form='went'),
        'think': make_word(english, 'think', rank=30, level='A2', ipa_uk='θɪŋk', ipa_us='θɪŋk'),
        'notwithstanding': make_word(english, 'notwithstanding', rank=1500, level='C1', register='formal'),
        'cat': make_word(english, 'cat', rank=40, level='A0'),
        'haus': make_word(german, 'Haus', rank=5, level='A1'),
    }

    collection = DictionaryCollection(
        language_id=english.id, collection_key='starter', title='Starter words', sort_order=1,
    )
    hidden = DictionaryCollection(
        language_id=english.id, collection_key='hidden', title='Hidden', is_public=False,
    )
    db.session.add_all([collection, hidden])
    db.session.flush()
    for order, name in enumerate(('house', 'go')):
        db.session.add(DictionaryCollectionItem(
            collection_id=collection.id, sense_id=words[name]['sense_id'], sort_order=order,
        ))

    collocation = DictionaryCollocation(lemma_id=words['house']['lemma_id'], phrase='at home', gloss='in the house')
    db.session.add(collocation)

    ana = User(username='ana')
    bob = User(username='bob')
    db.session.add_all([ana, bob])
    db.session.commit()

    return {
        'language_id': english.id,
        'german_id': german.id,
        'words': words,
        'collection_id': collection.id,
        'hidden_collection_id': hidden.id,
        'collocation_id': collocation.id,
        'ana_id': ana.user_id,
        'bob_id': bob.user_id,
    }
