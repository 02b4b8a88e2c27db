"""
Central Signal Registry for Event-Driven Architecture.

Usage:
    # Publisher (sender)
    from lexistack_app.core.signals import activity_recorded
    activity_recorded.send(None, username='ana', xp_granted=10, ...)

    # Subscriber (receiver) - in module's events.py
    @activity_recorded.connect
    def on_activity_recorded(sender, **kwargs):
        ...
"""
from blinker import Namespace

learning_signals = Namespace()

# Fired after an active-day transition is committed (never on a same-day no-op)
# Payload: username, streak_days, max_streak, last_active_date, xp_granted
activity_recorded = learning_signals.signal('activity_recorded')

# Fired after a per-track score changed
# Payload: username, sense_id, track, value, learned
track_progress_updated = learning_signals.signal('track_progress_updated')

# ============================================
# Content Pipeline Signals
# ============================================
content_signals = Namespace()

# Fired after a sync job applied a batch to the item store
# Payload: lang, request_id, content_version, stats
content_synced = content_signals.signal('content_synced')
