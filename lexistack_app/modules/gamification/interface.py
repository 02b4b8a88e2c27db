from datetime import date
from typing import Any, Dict, List, Optional

from .logics.level_logic import level_from_xp
from .schemas import ActivityResultDTO, StreakDTO
from .services.leaderboard_service import LeaderboardService
from .services.reward_service import RewardService
from .services.streak_service import StreakService


def record_activity(username: str, today: Optional[date] = None) -> ActivityResultDTO:
    """Public API: count today as an active day."""
    out = StreakService.record_activity(username, today=today)
    return ActivityResultDTO(
        username=username,
        streak_days=out['streakDays'],
        max_streak=out['maxStreak'],
        last_active_date=out['lastActiveDate'],
        xp_granted=out['xpGranted'],
    )


def get_streak(username: str) -> StreakDTO:
    out = StreakService.get_active_days(username)
    return StreakDTO(username, out['streakDays'], out['maxStreak'], out['lastActiveDate'])


def get_leaderboard(period: str = 'week', limit: Optional[int] = None) -> List[Dict[str, Any]]:
    return LeaderboardService.get_leaderboard(period, limit)


def get_level(total_xp: int) -> int:
    return level_from_xp(total_xp)


def seed_default_rewards() -> None:
    RewardService.seed_default_rewards()
