"""
Selection Logic - Pure functions for the daily pack.

This module contains ONLY pure Python logic.
NO database, NO Flask, NO model dependencies allowed.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, TypeVar

KIND_HARD_WORD = 'hard_word'

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619

# A0/A1 are beginner material and never count as hard by level.
LEVEL_ORDER = ('A0', 'A1', 'A2', 'B1', 'B2', 'C1', 'C2')

UK_PRONUNCIATION_MARKERS = ('θ', 'ð', 'ʒ', 'tʃ', 'dʒ', 'ŋ', 'əː', 'ɜː')
US_PRONUNCIATION_MARKERS = ('θ', 'ð', 'ʒ', 'tʃ', 'dʒ', 'ŋ', 'ɝ', 'ɚ')

T = TypeVar('T')


def stable_string_hash(text: str) -> int:
    """
    32-bit FNV-1a over the UTF-16 code units of ``text``.

    UTF-16 units keep the value identical to what browser clients compute
    for the same seed, including characters outside the BMP.

    Examples:
        >>> stable_string_hash('')
        2166136261
        >>> stable_string_hash('a')
        3826002220
    """
    data = str(text or '').encode('utf-16-le')
    h = FNV_OFFSET_BASIS
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def pick_index(seed: str, count: int) -> int:
    """Deterministic index into a list of ``count`` candidates."""
    if count <= 0:
        raise ValueError('count must be positive')
    return stable_string_hash(seed) % count


def pick(seed: str, candidates: Sequence[T]) -> Optional[T]:
    if not candidates:
        return None
    return candidates[pick_index(seed, len(candidates))]


def highlight_seed(username: str, lang: str, day_key: str, kind: str = KIND_HARD_WORD) -> str:
    return f'{username}|{lang}|{day_key}|{kind}'


def level_rank(level: Optional[str], min_level: str = 'A2') -> int:
    """A2=1 ... C2=5 (relative to ``min_level``); anything easier or unknown is 0."""
    code = str(level or '').strip().upper()
    if code not in LEVEL_ORDER or min_level not in LEVEL_ORDER:
        return 0
    offset = LEVEL_ORDER.index(min_level)
    position = LEVEL_ORDER.index(code)
    return position - offset + 1 if position >= offset else 0


def has_pronunciation_marker(ipa_uk: Optional[str], ipa_us: Optional[str]) -> bool:
    uk = ipa_uk or ''
    us = ipa_us or ''
    return any(m in uk for m in UK_PRONUNCIATION_MARKERS) or any(m in us for m in US_PRONUNCIATION_MARKERS)


@dataclass(frozen=True)
class Hardness:
    pronunciation: bool
    grammar: bool
    score: int

    @property
    def is_hard(self) -> bool:
        return self.pronunciation or self.grammar

    @property
    def difficulty_type(self) -> str:
        if self.pronunciation and self.grammar:
            return 'pronunciation_and_grammar'
        if self.pronunciation:
            return 'pronunciation'
        return 'grammar'

    @property
    def difficulty_hint(self) -> str:
        if self.pronunciation and self.grammar:
            return 'Tricky pronunciation and grammar'
        if self.pronunciation:
            return 'Tricky pronunciation'
        if self.grammar:
            return 'Tricky grammar'
        return 'Hard word'


def classify(
    level: Optional[str],
    register: Optional[str],
    ipa_uk: Optional[str],
    ipa_us: Optional[str],
    has_irregular_form: bool,
    min_level: str = 'A2',
    formal_registers: Iterable[str] = ('formal',),
) -> Hardness:
    """
    Score how hard a word is.

    Score = level rank (A2=1 .. C2=5) + 1 formal register
            + 3 phonetic marker + 2 irregular inflection.
    """
    rank = level_rank(level, min_level)
    formal = str(register or '').strip().lower() in {str(r).lower() for r in formal_registers}
    pronunciation = has_pronunciation_marker(ipa_uk, ipa_us)
    grammar = rank > 0 or formal or bool(has_irregular_form)

    score = rank + (1 if formal else 0) + (3 if pronunciation else 0) + (2 if has_irregular_form else 0)
    return Hardness(pronunciation=pronunciation, grammar=grammar, score=score)


@dataclass(frozen=True)
class Candidate:
    sense_id: int
    frequency_rank: int
    hardness: Hardness


def order_candidates(candidates: Iterable[Candidate], limit: Optional[int] = None) -> List[Candidate]:
    """Hardest first, then most frequent, then by id; optionally truncated."""
    ordered = sorted(
        (c for c in candidates if c.hardness.is_hard),
        key=lambda c: (-c.hardness.score, c.frequency_rank, c.sense_id),
    )
    if limit is not None:
        ordered = ordered[:max(0, int(limit))]
    return ordered
