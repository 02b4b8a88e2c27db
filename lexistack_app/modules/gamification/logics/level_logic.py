"""
Level Logic - XP to level conversion.

This module contains ONLY pure Python logic.
NO database, NO Flask, NO model dependencies allowed.
"""

LEVELS_TOTAL = 100
BASE_XP_PER_LEVEL = 80
XP_STEP_PER_LEVEL = 8.5


def xp_to_reach_level(level: int) -> float:
    """
    Minimum total XP for ``level`` (1..100).

    Each level costs 8.5 XP more than the previous one, starting at 80.

    Examples:
        >>> xp_to_reach_level(1)
        0
        >>> xp_to_reach_level(2)
        80.0
        >>> xp_to_reach_level(3)
        168.5
    """
    if level <= 1:
        return 0
    n = min(level, LEVELS_TOTAL) - 1
    return BASE_XP_PER_LEVEL * n + (XP_STEP_PER_LEVEL * (n - 1) * n) / 2


def level_from_xp(total_xp) -> int:
    try:
        xp = float(total_xp or 0)
    except (TypeError, ValueError):
        return 1
    if xp < 0:
        return 1
    for level in range(LEVELS_TOTAL, 0, -1):
        if xp >= xp_to_reach_level(level):
            return level
    return 1
