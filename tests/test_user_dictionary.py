"""
Tests for the Personal State Tracker.

Tests cover:
- Saving / removing senses and entry-id resolution
- Status changes (single and batch) with normalisation
- Per-track progress clamping and the "learned" flag
- Concurrent answers on one sense never lose an increment
- Game progress auto-saving the sense
- My-words listing and summary per language
- Collections: listing, enrollment, completion
- Phrase progress
- Legacy backfill and legacy patches
"""

import threading

from conftest import make_word

from lexistack_app import db
from lexistack_app.models import Language, User
from lexistack_app.modules.user_dictionary import interface as tracker
from lexistack_app.modules.user_dictionary.models import (
    UserCollectionState,
    UserSavedSense,
    UserSenseProgress,
)


def _sense(data, name):
    return data['words'][name]['sense_id']


def _entry(data, name):
    return data['words'][name]['entry_id']


class TestSavedSenses:

    def test_add_is_idempotent(self, app, dictionary_data):
        sid = _sense(dictionary_data, 'house')
        assert tracker.add_saved_sense('ana', sid) == {'senseId': sid}
        assert tracker.add_saved_sense('ana', sid) == {'senseId': sid}

        rows = UserSavedSense.query.filter_by(username='ana').all()
        assert len(rows) == 1
        assert rows[0].status == 'queue'
        assert rows[0].source == 'manual'

    def test_unknown_sense_is_dropped(self, app, dictionary_data):
        assert tracker.add_saved_sense('ana', 999999) is None
        assert tracker.add_saved_sense('', _sense(dictionary_data, 'house')) is None
        assert UserSavedSense.query.count() == 0

    def test_add_and_remove_by_entry_id(self, app, dictionary_data):
        out = tracker.add_saved_by_entry_id('ana', 'en', _entry(dictionary_data, 'go'))
        assert out['senseId'] == _sense(dictionary_data, 'go')
        assert tracker.get_sense_state('ana', out['senseId'])['isSaved'] is True

        assert tracker.remove_saved_by_entry_id('ana', 'en', _entry(dictionary_data, 'go')) == {'ok': True}
        assert tracker.get_sense_state('ana', out['senseId']) == {'isSaved': False, 'status': None}

    def test_entry_of_other_language_is_not_resolved(self, app, dictionary_data):
        assert tracker.add_saved_by_entry_id('ana', 'en', _entry(dictionary_data, 'haus')) is None

    def test_add_many_skips_unknown_ids(self, app, dictionary_data):
        ids = [_sense(dictionary_data, 'house'), _sense(dictionary_data, 'go'), 424242, 'junk']
        assert tracker.add_many_saved_senses('ana', ids) == {'ok': True, 'inserted': 2}
        assert tracker.add_many_saved_senses('ana', ids) == {'ok': True, 'inserted': 0}


class TestStatus:

    def test_set_status_normalises_unknown_values(self, app, dictionary_data):
        sid = _sense(dictionary_data, 'house')
        tracker.add_saved_sense('ana', sid)

        assert tracker.set_status('ana', sid, 'learning') == {'status': 'learning'}
        assert tracker.set_status('ana', sid, 'mastered') == {'status': 'queue'}

    def test_set_status_on_unsaved_sense_is_noop(self, app, dictionary_data):
        assert tracker.set_status('ana', _sense(dictionary_data, 'house'), 'known') is None
        assert UserSavedSense.query.count() == 0

    def test_batch_status(self, app, dictionary_data):
        ids = [_sense(dictionary_data, 'house'), _sense(dictionary_data, 'go')]
        tracker.add_many_saved_senses('ana', ids)

        out = tracker.set_status_many('ana', ids + [ids[0], 777], 'hard')
        assert out == {'ok': True, 'updated': 2, 'status': 'hard'}
        assert {row.status for row in UserSavedSense.query.filter_by(username='ana')} == {'hard'}


class TestTrackProgress:

    def test_answers_move_and_clamp(self, app, dictionary_data):
        sid = _sense(dictionary_data, 'think')
        out = tracker.update_track_progress('ana', sid, 'beginner', False)
        assert out['beginner'] == 0

        for _ in range(105):
            out = tracker.update_track_progress('ana', sid, 'beginner', True)
        assert out['beginner'] == 100
        assert out['experienced'] == 0
        assert out['learned'] is False

    def test_learned_when_both_tracks_full(self, app, dictionary_data):
        sid = _sense(dictionary_data, 'think')
        db.session.add(UserSenseProgress(username='ana', sense_id=sid, beginner=100, experienced=99, expert=0))
        db.session.commit()

        out = tracker.update_track_progress('ana', sid, 'experienced', True)
        assert out['experienced'] == 100
        assert out['learned'] is True
        assert tracker.is_learned('ana', sid) is True

    def test_invalid_track_or_sense(self, app, dictionary_data):
        assert tracker.update_track_progress('ana', _sense(dictionary_data, 'think'), 'master', True) is None
        assert tracker.update_track_progress('ana', 999999, 'beginner', True) is None

    def test_game_progress_saves_the_sense(self, app, dictionary_data):
        sid = _sense(dictionary_data, 'cat')
        tracker.update_track_progress('ana', sid, 'expert', True)

        row = UserSavedSense.query.filter_by(username='ana', sense_id=sid).one()
        assert row.source == 'game'
        assert row.status == 'queue'

    def test_default_progress(self, app, dictionary_data):
        assert tracker.get_sense_progress('ana', _sense(dictionary_data, 'cat')) == {
            'beginner': 0, 'experienced': 0, 'expert': 0, 'learned': False,
        }


class TestConcurrentTrackProgress:

    def test_simultaneous_answers_are_all_counted(self, file_app):
        """Every correct answer from racing threads lands on the single progress row."""
        english = Language(code='en', name='English')
        db.session.add(english)
        db.session.flush()
        sid = make_word(english, 'house', rank=10)['sense_id']
        db.session.commit()

        threads_count = 8
        answers_per_thread = 2
        errors = []
        barrier = threading.Barrier(threads_count)

        def worker():
            with file_app.app_context():
                try:
                    barrier.wait()
                    for _ in range(answers_per_thread):
                        tracker.update_track_progress('ana', sid, 'beginner', True)
                except Exception as e:  # surfaced by the assertion below
                    errors.append(e)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        rows = UserSenseProgress.query.filter_by(username='ana', sense_id=sid).all()
        assert len(rows) == 1
        assert rows[0].beginner == threads_count * answers_per_thread
        assert rows[0].experienced == 0
        assert UserSavedSense.query.filter_by(username='ana', sense_id=sid).count() == 1


class TestListings:

    def test_my_words_newest_first_with_filters(self, app, dictionary_data):
        for name in ('house', 'go', 'think'):
            tracker.add_saved_sense('ana', _sense(dictionary_data, name))
        tracker.add_saved_sense('ana', _sense(dictionary_data, 'haus'))
        tracker.set_status('ana', _sense(dictionary_data, 'go'), 'known')

        listing = tracker.list_my_words('ana', 'en')
        assert listing['total'] == 3
        assert [item['lemma'] for item in listing['items']] == ['go', 'think', 'house']

        known = tracker.list_my_words('ana', 'en', status='known')
        assert [item['lemma'] for item in known['items']] == ['go']

        search = tracker.list_my_words('ana', 'en', q='big house')
        assert [item['lemma'] for item in search['items']] == ['house']

        page = tracker.list_my_words('ana', 'en', offset=1, limit=1)
        assert page['total'] == 3
        assert [item['lemma'] for item in page['items']] == ['think']

    def test_summary_counts_per_language(self, app, dictionary_data):
        for name in ('house', 'go', 'haus'):
            tracker.add_saved_sense('ana', _sense(dictionary_data, name))
        tracker.set_status('ana', _sense(dictionary_data, 'go'), 'hard')

        assert tracker.get_my_words_summary('ana', 'en') == {
            'total': 2, 'queue': 1, 'learning': 0, 'known': 0, 'hard': 1,
        }
        assert tracker.get_my_words_summary('ana', 'de')['total'] == 1
        assert tracker.get_my_words_summary('ana', 'xx')['total'] == 0


class TestCollections:

    def test_list_collections(self, app, dictionary_data):
        tracker.add_saved_sense('ana', _sense(dictionary_data, 'house'))

        items = tracker.list_collections('en', 'ana')
        assert [item['collectionKey'] for item in items] == ['starter']
        assert items[0]['total'] == 2
        assert items[0]['saved'] == 1
        assert tracker.list_collections('en')[0]['saved'] is None

    def test_enroll_is_idempotent(self, app, dictionary_data):
        first = tracker.enroll_collection('ana', 'en', 'starter')
        assert first['enrolled'] is True
        assert first['added'] == 2

        second = tracker.enroll_collection('ana', 'en', 'starter')
        assert second['enrolled'] is False
        assert UserCollectionState.query.filter_by(username='ana').count() == 1

        saved = UserSavedSense.query.filter_by(username='ana').all()
        assert {row.source for row in saved} == {'collection'}

    def test_private_or_unknown_collection(self, app, dictionary_data):
        assert tracker.enroll_collection('ana', 'en', 'hidden') == {'ok': False, 'reason': 'no-collection'}
        assert tracker.add_collection_items('ana', 'en', dictionary_data['hidden_collection_id']) is None

    def test_completion_is_stamped_when_all_known(self, app, dictionary_data):
        tracker.enroll_collection('ana', 'en', 'starter')
        ids = [_sense(dictionary_data, 'house'), _sense(dictionary_data, 'go')]

        tracker.set_status('ana', ids[0], 'known')
        progress = tracker.get_collection_progress('ana', 'en', 'starter')['progress']
        assert progress['known'] == 1
        assert progress['completedAt'] is None

        tracker.set_status_many('ana', ids, 'known')
        progress = tracker.get_collection_progress('ana', 'en', 'starter')['progress']
        assert progress == {
            'total': 2,
            'saved': 2,
            'known': 2,
            'startedAt': progress['startedAt'],
            'completedAt': progress['completedAt'],
        }
        assert progress['startedAt'] is not None
        assert progress['completedAt'] is not None

    def test_get_collection_marks_saved_items(self, app, dictionary_data):
        tracker.add_saved_sense('ana', _sense(dictionary_data, 'go'))
        out = tracker.get_collection('ana', 'en', dictionary_data['collection_id'])

        assert [(item['lemma'], item['isSaved']) for item in out['items']] == [('house', False), ('go', True)]
        assert out['items'][0]['example'] == 'A big house.'

    def test_add_all_without_enrolling(self, app, dictionary_data):
        out = tracker.add_collection_items('ana', 'en', dictionary_data['collection_id'])
        assert out == {'ok': True, 'inserted': 2}
        assert UserCollectionState.query.count() == 0


class TestPhrases:

    def test_phrase_lifecycle(self, app, dictionary_data):
        cid = dictionary_data['collocation_id']
        assert tracker.add_phrase_progress('ana', 'collocation', cid) == {'ok': True}
        assert tracker.add_phrase_progress('ana', 'collocation', 999) == {'ok': False}
        assert tracker.add_phrase_progress('ana', 'idiom', cid) == {'ok': False}

        assert tracker.set_phrase_status('ana', 'collocation', cid, 'learning') == {'status': 'learning'}
        assert tracker.get_phrase_state('ana', 'collocation', cid)['status'] == 'learning'

        listing = tracker.list_my_phrases('ana', 'en')
        assert listing['total'] == 1
        assert listing['items'][0]['text'] == 'at home'
        assert listing['items'][0]['lemma'] == 'house'
        assert tracker.list_my_phrases('ana', 'de')['total'] == 0

        assert tracker.remove_phrase_progress('ana', 'collocation', cid) == {'ok': True}
        assert tracker.get_phrase_state('ana', 'collocation', cid) == {'isSaved': False, 'status': None}

    def test_status_of_unsaved_phrase(self, app, dictionary_data):
        assert tracker.set_phrase_status('ana', 'collocation', dictionary_data['collocation_id'], 'known') is None


class TestLegacyMigration:

    def _legacy_user(self, data):
        user = db.session.get(User, data['ana_id'])
        user.personal_dictionary = [_entry(data, 'house'), 99999]
        user.word_progress = {
            str(_entry(data, 'house')): 37,
            str(_entry(data, 'go')): {'beginner': 5, 'experienced': 6, 'expert': 7},
        }
        db.session.commit()
        return user

    def test_backfill_runs_once(self, app, dictionary_data):
        user = self._legacy_user(dictionary_data)

        first = tracker.ensure_backfilled('ana', 'en')
        assert first == {'ok': True, 'migrated': True, 'savedSenses': 1, 'progressRows': 2}

        house = tracker.get_sense_progress('ana', _sense(dictionary_data, 'house'))
        assert (house['beginner'], house['experienced'], house['expert']) == (37, 0, 0)
        go = tracker.get_sense_progress('ana', _sense(dictionary_data, 'go'))
        assert (go['beginner'], go['experienced'], go['expert']) == (5, 6, 7)

        refreshed = db.session.get(User, user.user_id)
        assert refreshed.word_progress[str(_entry(dictionary_data, 'house'))] == {
            'beginner': 37, 'experienced': 0, 'expert': 0,
        }

        assert tracker.ensure_backfilled('ana', 'en') == {'ok': True, 'migrated': False}

    def test_backfill_skipped_when_rows_exist(self, app, dictionary_data):
        self._legacy_user(dictionary_data)
        tracker.add_saved_sense('ana', _sense(dictionary_data, 'cat'))

        assert tracker.ensure_backfilled('ana', 'en')['migrated'] is False
        assert UserSavedSense.query.filter_by(username='ana').count() == 1

    def test_unknown_user(self, app, dictionary_data):
        assert tracker.ensure_backfilled('ghost', 'en') == {'ok': False, 'reason': 'no-user'}

    def test_legacy_patch_never_deletes(self, app, dictionary_data):
        tracker.add_saved_sense('ana', _sense(dictionary_data, 'cat'))

        out = tracker.sync_from_legacy_patch('ana', 'en', {
            'personalDictionary': [_entry(dictionary_data, 'think')],
            'wordProgress': {str(_entry(dictionary_data, 'think')): 12},
        })
        assert out == {'ok': True, 'savedSenses': 1, 'progressRows': 1}

        saved = {row.sense_id for row in UserSavedSense.query.filter_by(username='ana')}
        assert saved == {_sense(dictionary_data, 'cat'), _sense(dictionary_data, 'think')}
        assert tracker.get_sense_progress('ana', _sense(dictionary_data, 'think'))['beginner'] == 12
        assert db.session.get(User, dictionary_data['ana_id']).word_progress == {
            str(_entry(dictionary_data, 'think')): {'beginner': 12, 'experienced': 0, 'expert': 0},
        }
