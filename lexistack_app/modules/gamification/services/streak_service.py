# File: lexistack_app/modules/gamification/services/streak_service.py
"""
Streak Service
==============
Active-day streaks counted on the server calendar.

``record_activity`` reads, decides and writes under a per-user keyed lock,
so simultaneous requests for one learner are serialised while different
learners never wait on each other. The reward lookup runs after the streak
is committed: a failing lookup costs the XP, never the streak.
"""

import logging
from datetime import date
from typing import Dict, Optional

from lexistack_app.core.db_session import acquire_keyed_lock, utc_now
from lexistack_app.core.extensions import db
from lexistack_app.core.signals import activity_recorded
from lexistack_app.services.config_service import get_runtime_config
from lexistack_app.utils.time_utils import server_today

from ..logics.streak_logic import StreakState, advance_streak
from ..models import UserActiveDay
from .reward_service import RewardService

logger = logging.getLogger(__name__)


def _lock_key(username: str) -> str:
    return f'active_day:{username}'


class StreakService:
    """Service for the active-day state machine."""

    @staticmethod
    def get_active_days(username: str) -> Dict:
        user = str(username or '').strip()
        row = db.session.get(UserActiveDay, user) if user else None
        if row is None:
            return {'lastActiveDate': None, 'streakDays': 0, 'maxStreak': 0}
        return row.to_dict()

    @staticmethod
    def record_activity(username: str, today: Optional[date] = None) -> Dict:
        """
        Count today as an active day for ``username``.

        Returns:
            dict with streakDays, maxStreak, lastActiveDate and xpGranted
            (0 when today was already counted).
        """
        user = str(username or '').strip()
        if not user:
            raise ValueError('username is required')
        today = today or server_today()

        try:
            acquire_keyed_lock(db.session, _lock_key(user))
            row = (
                UserActiveDay.query
                .filter_by(username=user)
                .populate_existing()
                .with_for_update()
                .first()
            )
            previous = None
            if row is not None:
                previous = StreakState(row.last_active_date, row.streak_days or 0, row.max_streak or 0)

            transition = advance_streak(previous, today)
            state = transition.state
            if transition.changed:
                if row is None:
                    row = UserActiveDay(username=user)
                    db.session.add(row)
                row.last_active_date = state.last_active_date
                row.streak_days = state.streak_days
                row.max_streak = state.max_streak
                row.updated_at = utc_now()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        result = {
            'streakDays': state.streak_days,
            'maxStreak': state.max_streak,
            'lastActiveDate': state.last_active_date.isoformat() if state.last_active_date else None,
            'xpGranted': 0,
        }
        if not transition.changed:
            return result

        reward_key = get_runtime_config('ACTIVE_DAY_REWARD_KEY', 'active_day')
        try:
            result['xpGranted'] = RewardService.get_xp(reward_key)
        except Exception as e:
            db.session.rollback()
            logger.warning("Reward lookup '%s' failed for %s: %s", reward_key, user, e)

        activity_recorded.send(
            None,
            username=user,
            streak_days=result['streakDays'],
            max_streak=result['maxStreak'],
            last_active_date=result['lastActiveDate'],
            xp_granted=result['xpGranted'],
        )
        return result
