# File: lexistack_app/modules/gamification/services/reward_service.py
"""
Reward Service
==============
Reward configuration lookups and the XP ledger.
"""

import logging
from typing import Dict, Optional

from lexistack_app.core.db_session import insert_ignore, utc_now
from lexistack_app.core.extensions import db
from lexistack_app.models import User
from lexistack_app.services.config_service import get_runtime_config

from ..models import Reward, ScoreLog

logger = logging.getLogger(__name__)


class RewardService:

    @staticmethod
    def get_reward_config(reward_key: str) -> Optional[Dict]:
        reward = Reward.query.filter_by(reward_key=reward_key).first()
        if reward is None or reward.config is None:
            return None
        return reward.config if isinstance(reward.config, dict) else {}

    @staticmethod
    def get_xp(reward_key: str) -> int:
        """XP amount configured for ``reward_key``; 0 when not configured."""
        config = RewardService.get_reward_config(reward_key)
        if not config:
            return 0
        xp = config.get('xp')
        if isinstance(xp, bool) or not isinstance(xp, (int, float)):
            return 0
        return int(xp)

    @staticmethod
    def seed_default_rewards() -> None:
        """Create the active-day reward row unless it already exists."""
        key = get_runtime_config('ACTIVE_DAY_REWARD_KEY', 'active_day')
        xp = int(get_runtime_config('ACTIVE_DAY_DEFAULT_XP', 10))
        inserted = insert_ignore(
            db.session,
            Reward,
            {'reward_key': key, 'config': {'xp': xp}, 'description': f'{xp} XP for the first activity of the day'},
            ['reward_key'],
        )
        db.session.commit()
        if inserted:
            logger.info("Seeded reward '%s' (%d XP)", key, xp)

    @staticmethod
    def award_xp(username: str, amount: int, reason: str) -> int:
        """Append a ledger row and add ``amount`` to the learner's total. Returns the new total."""
        if not username or not amount:
            return 0
        db.session.add(ScoreLog(username=username, amount=int(amount), reason=reason, created_at=utc_now()))
        user = User.query.filter_by(username=username).first()
        new_total = 0
        if user is not None:
            user.total_xp = (user.total_xp or 0) + int(amount)
            new_total = user.total_xp
        db.session.commit()
        return new_total
