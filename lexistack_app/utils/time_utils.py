"""
Server calendar helpers.

Streaks and the daily highlight count days in the server's time zone
(``SERVER_TIMEZONE``), never the client's.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytz

from lexistack_app.services.config_service import get_runtime_config


def server_timezone(tz_name: Optional[str] = None):
    name = tz_name or get_runtime_config('SERVER_TIMEZONE', 'UTC') or 'UTC'
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def server_today(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> date:
    """Calendar date of ``now`` (default: current instant) in the server time zone."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(server_timezone(tz_name)).date()


def day_key(day: date) -> str:
    return day.isoformat()


def shift_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def day_start_utc(day: date, tz_name: Optional[str] = None) -> datetime:
    """Naive UTC instant at which ``day`` begins in the server time zone."""
    tz = server_timezone(tz_name)
    local_midnight = tz.localize(datetime(day.year, day.month, day.day))
    return local_midnight.astimezone(pytz.UTC).replace(tzinfo=None)
