# backend/booking_engine/services/slots/conflicts.py
"""
Conflict detection against what already occupies a staff member's day.

Sources of occupation:
✓ Appointments (PENDING / CONFIRMED / COMPLETED; CANCELLED never occupies)
✓ Staff unavailability blocks (absolute datetime ranges)
✓ Lunch breaks (excluded intervals from the resolver)

Members of one group slot share a group_key; when a caller asks about its
own group, those appointments are counted, not treated as conflicts.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from .config import GridConfig
from .intervals import Interval, clip_to_day, format_datetime, parse_datetime

STATUS_CANCELLED = "CANCELLED"
ACTIVE_STATUSES = ("PENDING", "CONFIRMED", "COMPLETED")

OCCUPIED = "occupied"
LUNCH_BREAK = "lunch-break"
STAFF_UNAVAILABLE = "staff-unavailable"


@dataclass(frozen=True)
class Busy:
    """One occupied stretch of the target day, in minutes."""
    interval: Interval
    reason: str = OCCUPIED
    group_key: str | None = None


def group_key_for(service_id: int, staff_id: int, start: datetime) -> str:
    """Key shared by every enrollee of one group slot."""
    return f"{service_id}:{staff_id}:{format_datetime(start)}"


# ── Building the busy list ───────────────────────────────────────────────


def busy_from_appointments(appointments: Iterable, target_date: date) -> list[Busy]:
    """
    Occupied intervals of appointments that touch target_date.

    Rows need scheduled_for, duration, status and group_key. An appointment
    running past midnight occupies only its part of the day.
    """
    busy = []
    for appt in appointments:
        if appt.status == STATUS_CANCELLED:
            continue
        start = parse_datetime(appt.scheduled_for)
        end = start + timedelta(minutes=appt.duration)
        clipped = clip_to_day(start, end, target_date)
        if clipped is None:
            continue
        busy.append(Busy(clipped, OCCUPIED, appt.group_key))
    return busy


def busy_from_unavailability(blocks: Iterable, target_date: date) -> list[Busy]:
    busy = []
    for block in blocks:
        clipped = clip_to_day(parse_datetime(block.start), parse_datetime(block.end), target_date)
        if clipped is not None:
            busy.append(Busy(clipped, STAFF_UNAVAILABLE))
    return busy


def count_group_members(appointments: Iterable) -> Counter:
    """Active enrollees per group_key."""
    return Counter(
        appt.group_key
        for appt in appointments
        if appt.group_key and appt.status != STATUS_CANCELLED
    )


# ── Checks ───────────────────────────────────────────────────────────────


def first_conflict(
    candidate: Interval,
    busy: Iterable[Busy],
    excluded: Iterable[Interval] = (),
    own_group: str | None = None,
) -> str | None:
    """
    Reason the candidate cannot be booked, or None if it is free.

    Lunch breaks win over unavailability blocks, which win over appointments.
    """
    if any(candidate.overlaps(lunch) for lunch in excluded):
        return LUNCH_BREAK

    hit = None
    for entry in busy:
        if own_group is not None and entry.group_key == own_group:
            continue
        if not candidate.overlaps(entry.interval):
            continue
        if entry.reason == STAFF_UNAVAILABLE:
            return STAFF_UNAVAILABLE
        hit = entry.reason
    return hit


def occupied_indices(busy: Iterable[Busy], grid: GridConfig) -> set[int]:
    """Grid indices touched by any busy interval."""
    indices: set[int] = set()
    for entry in busy:
        indices.update(grid.indices_covering(entry.interval))
    return indices
