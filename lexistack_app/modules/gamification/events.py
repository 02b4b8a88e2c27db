"""
Event Handlers for Gamification Module.

Turns committed active-day transitions into XP. The streak write has
already happened when these run, so failures are logged and dropped.
"""
from flask import current_app

from lexistack_app.core.extensions import db
from lexistack_app.core.signals import activity_recorded


@activity_recorded.connect
def on_activity_recorded(sender, **kwargs):
    """
    Expected kwargs:
        - username: str
        - streak_days: int
        - max_streak: int
        - last_active_date: str (ISO date)
        - xp_granted: int
    """
    from .services.reward_service import RewardService

    username = kwargs.get('username')
    xp_granted = kwargs.get('xp_granted', 0)
    if not username or not xp_granted:
        return

    try:
        RewardService.award_xp(username, xp_granted, reason='ACTIVE_DAY')
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"[Gamification] Error awarding active-day XP: {e}", exc_info=True)
