"""
Streak Logic - Pure functions for active-day accounting.

This module contains ONLY pure Python logic.
NO database, NO Flask, NO model dependencies allowed.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional


@dataclass(frozen=True)
class StreakState:
    last_active_date: Optional[date]
    streak_days: int
    max_streak: int


@dataclass(frozen=True)
class StreakTransition:
    state: StreakState
    changed: bool  # False for a repeat call on the same day


def advance_streak(previous: Optional[StreakState], today: date) -> StreakTransition:
    """
    Apply one "learner was active today" event.

    - no record yet: streak 1
    - already counted today: unchanged
    - last active yesterday: streak + 1
    - anything older: streak restarts at 1

    ``max_streak`` never decreases.

    Examples:
        >>> from datetime import date
        >>> advance_streak(None, date(2024, 1, 1)).state.streak_days
        1
        >>> prev = StreakState(date(2024, 1, 1), 4, 4)
        >>> advance_streak(prev, date(2024, 1, 2)).state.streak_days
        5
        >>> advance_streak(prev, date(2024, 1, 5)).state
        StreakState(last_active_date=datetime.date(2024, 1, 5), streak_days=1, max_streak=4)
    """
    if previous is not None and previous.last_active_date == today:
        return StreakTransition(state=previous, changed=False)

    streak = 1
    if previous is not None and previous.last_active_date == today - timedelta(days=1):
        streak = max(0, previous.streak_days) + 1

    prev_max = max(0, previous.max_streak) if previous is not None else 0
    state = StreakState(last_active_date=today, streak_days=streak, max_streak=max(prev_max, streak))
    return StreakTransition(state=state, changed=True)
