"""
Event Handlers for the User Dictionary Module.

A game answer on a sense the learner never saved puts it into "my words",
so progress earned in games always shows up in the personal lists.
"""
from flask import current_app

from lexistack_app.core.extensions import db
from lexistack_app.core.signals import track_progress_updated


@track_progress_updated.connect
def on_track_progress_updated(sender, **kwargs):
    """
    Expected kwargs:
        - username: str
        - sense_id: int
        - track: str
        - value: int
        - learned: bool
    """
    from .services.tracker_service import TrackerService

    username = kwargs.get('username')
    sense_id = kwargs.get('sense_id')
    if not username or not sense_id:
        return

    try:
        if not TrackerService.get_sense_state(username, sense_id)['isSaved']:
            TrackerService.add_saved_sense(username, sense_id, source='game')
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"[UserDictionary] Error saving sense from game progress: {e}", exc_info=True)
