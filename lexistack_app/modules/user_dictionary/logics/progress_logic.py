"""
Progress Logic - Pure functions for the personal state tracker.

This module contains ONLY pure Python logic.
NO database, NO Flask, NO model dependencies allowed.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

STATUS_QUEUE = 'queue'
STATUS_LEARNING = 'learning'
STATUS_KNOWN = 'known'
STATUS_HARD = 'hard'
VALID_STATUSES = (STATUS_QUEUE, STATUS_LEARNING, STATUS_KNOWN, STATUS_HARD)

TRACKS = ('beginner', 'experienced', 'expert')
PHRASE_ITEM_TYPES = ('collocation', 'pattern', 'form_card')

SCORE_MIN = 0
SCORE_MAX = 100


def normalize_status(value: Any) -> str:
    """Map anything that is not a known status to ``queue``."""
    status = str(value or '').strip().lower()
    return status if status in VALID_STATUSES else STATUS_QUEUE


def normalize_track(value: Any) -> Optional[str]:
    track = str(value or '').strip().lower()
    return track if track in TRACKS else None


def clamp_int(value: Any, lo: int, hi: int, default: int) -> int:
    """
    Coerce ``value`` to an int inside ``[lo, hi]``.

    Non-numeric input (``None``, ``"abc"``, NaN) falls back to ``default``;
    floats are truncated toward zero.

    Examples:
        >>> clamp_int("42", 0, 100, 0)
        42
        >>> clamp_int(250, 0, 100, 0)
        100
        >>> clamp_int("abc", 0, 100, 0)
        0
    """
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number or number in (float('inf'), float('-inf')):
        return default
    return max(lo, min(hi, int(number)))


def apply_answer(current: Any, correct: bool) -> int:
    """One answer moves a track score by +1 or -1, clamped to 0..100."""
    base = clamp_int(current, SCORE_MIN, SCORE_MAX, 0)
    delta = 1 if correct else -1
    return max(SCORE_MIN, min(SCORE_MAX, base + delta))


def is_learned(beginner: Any, experienced: Any) -> bool:
    return (
        clamp_int(beginner, SCORE_MIN, SCORE_MAX, 0) == SCORE_MAX
        and clamp_int(experienced, SCORE_MIN, SCORE_MAX, 0) == SCORE_MAX
    )


def parse_id_list(values: Any) -> List[int]:
    """Positive integer ids from an arbitrary list, de-duplicated in order."""
    if values is None:
        return []
    if not isinstance(values, (list, tuple, set)):
        values = [values]
    seen = set()
    result = []
    for raw in values:
        value = clamp_int(raw, 0, 2 ** 31 - 1, 0)
        if value > 0 and value not in seen:
            seen.add(value)
            result.append(value)
    return result


# ============================================
# Legacy progress values
# ============================================

@dataclass(frozen=True)
class LegacyScore:
    """Pre-track progress: one number for the whole word."""
    value: int


@dataclass(frozen=True)
class TrackScores:
    beginner: int = 0
    experienced: int = 0
    expert: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'beginner': self.beginner,
            'experienced': self.experienced,
            'expert': self.expert,
        }


ProgressValue = Union[LegacyScore, TrackScores]


def decode_progress(raw: Any) -> ProgressValue:
    """Read a ``word_progress`` value in either of its stored shapes."""
    if isinstance(raw, dict):
        return TrackScores(
            beginner=clamp_int(raw.get('beginner'), SCORE_MIN, SCORE_MAX, 0),
            experienced=clamp_int(raw.get('experienced'), SCORE_MIN, SCORE_MAX, 0),
            expert=clamp_int(raw.get('expert'), SCORE_MIN, SCORE_MAX, 0),
        )
    return LegacyScore(clamp_int(raw, SCORE_MIN, SCORE_MAX, 0))


def to_track_scores(value: ProgressValue) -> TrackScores:
    """A legacy scalar becomes the beginner track; other tracks start at 0."""
    if isinstance(value, TrackScores):
        return value
    return TrackScores(beginner=value.value)


def normalize_word_progress(raw: Any) -> Tuple[Dict[str, Dict[str, int]], bool]:
    """
    Normalise a legacy ``word_progress`` mapping to the per-track form.

    Returns:
        (normalised mapping keyed by entry id string, whether anything changed)
    """
    if not isinstance(raw, dict):
        return {}, raw not in (None, {})

    normalized: Dict[str, Dict[str, int]] = {}
    changed = False
    for key, value in raw.items():
        scores = to_track_scores(decode_progress(value)).to_dict()
        normalized[str(key)] = scores
        if value != scores:
            changed = True
    return normalized, changed


def iter_progress_rows(raw: Dict[str, Any]) -> Iterable[Tuple[int, TrackScores]]:
    """(entry_id, scores) pairs for every key of a progress mapping that is a valid id."""
    for key, value in (raw or {}).items():
        entry_id = clamp_int(key, 0, 2 ** 31 - 1, 0)
        if entry_id <= 0:
            continue
        yield entry_id, to_track_scores(decode_progress(value))
