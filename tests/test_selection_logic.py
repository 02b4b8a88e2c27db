"""
Tests for daily selection logic (no database).

Tests cover:
- FNV-1a hash values and index picking
- Hardness classification and scoring
- Candidate ordering
"""

import pytest

from lexistack_app.modules.daily.logics.selection import (
    Candidate,
    classify,
    has_pronunciation_marker,
    highlight_seed,
    level_rank,
    order_candidates,
    pick,
    pick_index,
    stable_string_hash,
)


class TestStableHash:

    def test_known_values(self):
        assert stable_string_hash('') == 2166136261
        assert stable_string_hash('a') == 3826002220

    def test_is_deterministic_and_32_bit(self):
        seed = highlight_seed('ana', 'en', '2024-03-01')
        assert seed == 'ana|en|2024-03-01|hard_word'
        assert stable_string_hash(seed) == stable_string_hash(seed)
        assert 0 <= stable_string_hash(seed) < 2 ** 32

    def test_non_bmp_characters_are_hashed(self):
        assert stable_string_hash('😀') != stable_string_hash('')

    def test_pick_index_in_range(self):
        for n in (1, 2, 7, 400):
            assert 0 <= pick_index('ana|en|2024-03-01|hard_word', n) < n

    def test_pick_index_rejects_empty(self):
        with pytest.raises(ValueError):
            pick_index('seed', 0)

    def test_pick_empty_is_none(self):
        assert pick('seed', []) is None
        assert pick('seed', ['only']) == 'only'


class TestClassification:

    def test_level_rank(self):
        assert level_rank('A1') == 0
        assert level_rank('a2') == 1
        assert level_rank('C2') == 5
        assert level_rank('Z9') == 0

    def test_pronunciation_markers(self):
        assert has_pronunciation_marker('θɪŋk', '') is True
        assert has_pronunciation_marker('', 'bɝd') is True
        assert has_pronunciation_marker('kæt', 'kæt') is False

    def test_easy_word_is_not_hard(self):
        hardness = classify('A1', 'neutral', 'kæt', 'kæt', False)
        assert hardness.is_hard is False
        assert hardness.score == 0

    def test_score_components(self):
        hardness = classify('C1', 'formal', 'θ', '', True)
        # C1 rank 4 + formal 1 + phonetic 3 + irregular 2
        assert hardness.score == 10
        assert hardness.difficulty_type == 'pronunciation_and_grammar'

    def test_irregular_only_is_grammar(self):
        hardness = classify('A1', 'neutral', '', '', True)
        assert hardness.is_hard is True
        assert hardness.difficulty_type == 'grammar'
        assert hardness.difficulty_hint == 'Tricky grammar'

    def test_order_candidates(self):
        easy = Candidate(1, 10, classify('A1', 'neutral', '', '', False))
        hard_a = Candidate(2, 50, classify('B1', 'neutral', '', '', False))
        hard_b = Candidate(3, 20, classify('B1', 'neutral', '', '', False))
        hardest = Candidate(4, 900, classify('C2', 'formal', '', '', False))

        ordered = order_candidates([easy, hard_a, hard_b, hardest])
        assert [c.sense_id for c in ordered] == [4, 3, 2]
        assert [c.sense_id for c in order_candidates([easy, hard_a, hard_b, hardest], limit=1)] == [4]
