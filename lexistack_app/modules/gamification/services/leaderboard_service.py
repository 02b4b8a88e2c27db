# File: lexistack_app/modules/gamification/services/leaderboard_service.py
"""XP leaderboards over the score ledger."""

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func

from lexistack_app.core.extensions import db
from lexistack_app.models import User
from lexistack_app.services.config_service import get_runtime_config
from lexistack_app.utils.time_utils import day_start_utc, server_today, shift_days

from ..logics.level_logic import level_from_xp
from ..models import ScoreLog, UserActiveDay

PERIOD_DAY = 'day'
PERIOD_WEEK = 'week'
PERIOD_ALL = 'all'
PERIODS = (PERIOD_DAY, PERIOD_WEEK, PERIOD_ALL)


class LeaderboardService:

    @staticmethod
    def period_start(period: str, today: Optional[date] = None):
        """Start of the period as naive UTC; ``None`` for all time. A week is today plus the 6 days before."""
        today = today or server_today()
        if period == PERIOD_DAY:
            return day_start_utc(today)
        if period == PERIOD_WEEK:
            return day_start_utc(shift_days(today, -6))
        return None

    @staticmethod
    def get_leaderboard(period: str = PERIOD_WEEK, limit=None, today: Optional[date] = None) -> List[Dict]:
        period = period if period in PERIODS else PERIOD_WEEK
        default_limit = int(get_runtime_config('LEADERBOARD_DEFAULT_LIMIT', 20))
        try:
            limit = int(limit) if limit is not None else default_limit
        except (TypeError, ValueError):
            limit = default_limit
        limit = min(max(limit, 1), 100)

        xp = func.sum(ScoreLog.amount).label('xp')
        query = db.session.query(ScoreLog.username, xp)
        start = LeaderboardService.period_start(period, today)
        if start is not None:
            query = query.filter(ScoreLog.created_at >= start)
        rows = (
            query.group_by(ScoreLog.username)
            .order_by(xp.desc(), ScoreLog.username.asc())
            .limit(limit)
            .all()
        )
        if not rows:
            return []

        usernames = [row.username for row in rows]
        totals = dict(
            db.session.query(User.username, User.total_xp).filter(User.username.in_(usernames)).all()
        )
        streaks = dict(
            db.session.query(UserActiveDay.username, UserActiveDay.max_streak)
            .filter(UserActiveDay.username.in_(usernames))
            .all()
        )

        board = []
        for rank, row in enumerate(rows, start=1):
            period_xp = int(row.xp or 0)
            total_xp = totals.get(row.username)
            board.append({
                'rank': rank,
                'username': row.username,
                'xp': period_xp,
                'level': level_from_xp(total_xp if total_xp is not None else period_xp),
                'maxStreak': int(streaks.get(row.username) or 0),
            })
        return board
