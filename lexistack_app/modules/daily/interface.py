from datetime import date
from typing import Dict, Optional

from .services.highlight_service import HighlightService
from .services.today_service import TodayService


def get_today_pack(username: str, lang: str, today: Optional[date] = None) -> Dict:
    """Public API: ``{due, new, hardOfDay}`` for a learner."""
    return TodayService.get_today_pack(username, lang, today=today)


def get_hard_word_of_day(username: str, lang: str, today: Optional[date] = None) -> Optional[Dict]:
    return HighlightService.get_hard_word_of_day(username, lang, today=today)
