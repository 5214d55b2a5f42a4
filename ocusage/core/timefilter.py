"""
Time window filtering.

Decides whether a message or session timestamp falls inside the report's
date range. Bounds are interpreted in local time and are inclusive.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

END_OF_DAY = time(23, 59, 59, 999000)


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` date.

    Raises:
        ValueError: If the value is not a valid date
    """
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD")


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` time of day.

    Raises:
        ValueError: If the value is not a valid time
    """
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")


def _local_epoch_ms(day: date, at: time) -> int:
    # naive datetimes are interpreted as local time by timestamp()
    return round(datetime.combine(day, at).timestamp() * 1000)


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[since, until]`` window with optional time-of-day bounds.

    ``start_time`` applies to the ``since`` date and ``end_time`` to the
    ``until`` date. The upper bound always extends to the last millisecond
    of its minute.
    """
    since: Optional[date] = None
    until: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @property
    def lower_bound(self) -> Optional[int]:
        if self.since is None:
            return None
        start = self.start_time or time(0, 0)
        return _local_epoch_ms(self.since, time(start.hour, start.minute))

    @property
    def upper_bound(self) -> Optional[int]:
        if self.until is None:
            return None
        if self.end_time is None:
            end = END_OF_DAY
        else:
            end = time(self.end_time.hour, self.end_time.minute, 59, 999000)
        return _local_epoch_ms(self.until, end)

    def contains(self, timestamp: float) -> bool:
        """Check whether an epoch-millisecond timestamp lies inside the window."""
        lower = self.lower_bound
        if lower is not None and timestamp < lower:
            return False
        upper = self.upper_bound
        if upper is not None and timestamp > upper:
            return False
        return True


def is_in_range(
    timestamp: float,
    since: Optional[date] = None,
    until: Optional[date] = None,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None
) -> bool:
    """Check whether ``timestamp`` (epoch ms) falls within the given range."""
    return TimeWindow(since, until, start_time, end_time).contains(timestamp)
