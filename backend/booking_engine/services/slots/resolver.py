# backend/booking_engine/services/slots/resolver.py
"""
Constraint resolver: the effective open window of one calendar date.

Contains:
✓ business hours (open flag, start/end, lunch break)
✓ staff weekly schedule (start/end, lunch break)
✓ service day and time restrictions

Does NOT contain:
✗ Appointments (checked by the conflict detector)
✗ Staff unavailability blocks (absolute datetimes, same)

Pure: same inputs, same window. No clock, no database.
"""

from dataclasses import dataclass
from datetime import date

from .intervals import Interval, intersect, parse_interval, weekday_index
from .rules import DayHours, ServiceRules, StaffDay

BUSINESS_CLOSED = "business-closed"
SERVICE_UNAVAILABLE_DAY = "service-unavailable-day"
NO_VALID_WINDOW = "no-valid-window"


@dataclass(frozen=True)
class Closed:
    reason: str

    is_open = False


@dataclass(frozen=True)
class OpenWindow:
    start: int
    end: int
    excluded_intervals: tuple[Interval, ...] = ()

    is_open = True

    @property
    def window(self) -> Interval:
        return Interval(self.start, self.end)


def resolve_window(
    target_date: date,
    hours_by_day: dict[int, DayHours],
    service: ServiceRules,
    staff_schedule: dict[int, StaffDay] | None = None,
) -> Closed | OpenWindow:
    """
    Intersect business, service and staff bounds for target_date.

    Each optional bound is applied only if its source defines both a start
    and an end; the window can only shrink, never widen.

    Raises:
        InvalidTimeFormat: stored business hours hold a malformed time.
    """
    weekday = weekday_index(target_date)

    # Step 1: business open?
    hours = hours_by_day.get(weekday)
    if hours is None or not hours.is_open or not hours.start or not hours.end:
        return Closed(BUSINESS_CLOSED)

    # Step 2: service allowed on this weekday?
    if service.available_days and weekday not in service.available_days:
        return Closed(SERVICE_UNAVAILABLE_DAY)

    # Step 3: tightest-wins intersection
    window = parse_interval(hours.start, hours.end)

    if window and service.start_time and service.end_time:
        window = intersect(window, parse_interval(service.start_time, service.end_time))

    staff_day = (staff_schedule or {}).get(weekday)
    if window and staff_day and staff_day.start and staff_day.end:
        window = intersect(window, parse_interval(staff_day.start, staff_day.end))

    # Step 4: anything left?
    if window is None or window.start >= window.end:
        return Closed(NO_VALID_WINDOW)

    # Step 5: lunch breaks
    excluded = []
    for lunch_start, lunch_end in (
        (hours.lunch_start, hours.lunch_end),
        (staff_day.lunch_start, staff_day.lunch_end) if staff_day else (None, None),
    ):
        if lunch_start and lunch_end:
            lunch = parse_interval(lunch_start, lunch_end)
            if lunch.start < lunch.end:
                excluded.append(lunch)

    return OpenWindow(window.start, window.end, tuple(sorted(excluded)))
