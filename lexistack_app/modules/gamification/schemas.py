from dataclasses import dataclass
from typing import Optional


@dataclass
class StreakDTO:
    username: str
    streak_days: int
    max_streak: int
    last_active_date: Optional[str]


@dataclass
class ActivityResultDTO(StreakDTO):
    xp_granted: int = 0
