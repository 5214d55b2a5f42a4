"""
Calendar period bucketing.

Maps a timestamp to the key of the period it belongs to. Keys sort
lexicographically in chronological order.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum


class Granularity(Enum):
    """Size of the calendar bucket used by period reports."""
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def adjective(self) -> str:
        """Report name, e.g. ``daily`` or ``hourly``."""
        return "daily" if self is Granularity.DAY else f"{self.value}ly"


# strftime slices of the UTC instant
_UTC_FORMATS = {
    Granularity.MINUTE: "%Y-%m-%dT%H:%M",
    Granularity.HOUR: "%Y-%m-%dT%H",
    Granularity.DAY: "%Y-%m-%d",
    Granularity.MONTH: "%Y-%m",
}


def period_key(timestamp: float, granularity: Granularity) -> str:
    """Return the period key of an epoch-millisecond timestamp.

    Minute, hour, day and month keys are taken from the UTC instant. Week
    keys use the local calendar date: ``"<Monday> to <Sunday>"`` where Monday
    is on or before the date.
    """
    if granularity is Granularity.WEEK:
        local_day = datetime.fromtimestamp(timestamp / 1000).date()
        monday = local_day - timedelta(days=local_day.weekday())
        sunday = monday + timedelta(days=6)
        return f"{monday.isoformat()} to {sunday.isoformat()}"

    instant = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return instant.strftime(_UTC_FORMATS[granularity])
