# backend/booking_engine/services/slots/intervals.py
"""
Time-window arithmetic.

All times inside the engine are day-relative minute offsets (0..1440).
Intervals are half-open: [start, end).
"""

import re
from datetime import date, datetime, timedelta
from typing import NamedTuple

from ..errors import InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

# 0 = Sunday … 6 = Saturday (same numbering as BusinessHours.day_of_week)
DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class Interval(NamedTuple):
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def label(self) -> str:
        return f"{minutes_to_time_str(self.start)}-{minutes_to_time_str(self.end)}"


def overlaps(a0: int, a1: int, b0: int, b1: int) -> bool:
    """[a0, a1) and [b0, b1) share at least one minute."""
    return a0 < b1 and b0 < a1


def intersect(a: Interval, b: Interval) -> Interval | None:
    start = max(a.start, b.start)
    end = min(a.end, b.end)
    if start >= end:
        return None
    return Interval(start, end)


def time_str_to_minutes(value: str) -> int:
    """
    Parse "HH:MM" (or "HH:MM:SS", seconds ignored) into minutes since midnight.

    "24:00" is accepted as the end-of-day bound.
    """
    if not isinstance(value, str):
        raise InvalidTimeFormat(f"Expected HH:MM string, got {value!r}")
    match = _TIME_RE.match(value.strip())
    if not match:
        raise InvalidTimeFormat(f"Invalid time format: {value!r}. Expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(f"Invalid time values: {value!r}. Hours: 0-23, Minutes: 0-59")
    return hours * 60 + minutes


def minutes_to_time_str(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_interval(start: str, end: str) -> Interval:
    return Interval(time_str_to_minutes(start), time_str_to_minutes(end))


def weekday_index(target_date: date) -> int:
    """Python's Monday=0 → Sunday=0 numbering."""
    return (target_date.weekday() + 1) % 7


def minute_of_day(dt: datetime) -> int:
    return dt.hour * 60 + dt.minute


def at_minute(target_date: date, minutes: int) -> datetime:
    return datetime.combine(target_date, datetime.min.time()) + timedelta(minutes=minutes)


def parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def format_datetime(dt: datetime) -> str:
    return dt.strftime(DATETIME_FORMAT)


def day_bounds(target_date: date) -> tuple[str, str]:
    """Stored-string range covering one calendar day: [start, next_start)."""
    start = datetime.combine(target_date, datetime.min.time())
    return format_datetime(start), format_datetime(start + timedelta(days=1))


def clip_to_day(start: datetime, end: datetime, target_date: date) -> Interval | None:
    """Part of an absolute [start, end) range that falls on target_date, as minutes."""
    day_start = datetime.combine(target_date, datetime.min.time())
    day_end = day_start + timedelta(days=1)
    lo = max(start, day_start)
    hi = min(end, day_end)
    if lo >= hi:
        return None
    return Interval(
        int((lo - day_start).total_seconds() // 60),
        int(-(-(hi - day_start).total_seconds() // 60)),
    )
