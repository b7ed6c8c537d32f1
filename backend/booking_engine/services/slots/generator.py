# backend/booking_engine/services/slots/generator.py
"""
Candidate slot generation for the continuous and explicit-window models.

Continuous: start at the window start and step forward while the whole
service still fits, [start, start + duration) half-open.
Explicit: each configured window is checked whole, no stepping.

Every candidate is emitted, unavailable ones carry a reason, in start order.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from .conflicts import Busy, first_conflict
from .intervals import Interval, minutes_to_time_str
from .resolver import OpenWindow
from .rules import SlotWindow

FULL = "full"
PAST = "past"
OUTSIDE_WORKING_HOURS = "outside-working-hours"


@dataclass(frozen=True)
class Slot:
    start: int
    end: int
    available: bool
    reason: str | None = None
    capacity: int | None = None
    booked: int | None = None

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    @property
    def time(self) -> str:
        return minutes_to_time_str(self.start)

    def to_dict(self) -> dict:
        data = {
            "time": self.time,
            "end_time": minutes_to_time_str(self.end),
            "available": self.available,
            "reason": self.reason,
        }
        if self.capacity is not None:
            data["capacity"] = self.capacity
            data["booked"] = self.booked
        return data


@dataclass(frozen=True)
class GroupContext:
    """
    Capacity bookkeeping for a group service.

    Attributes:
        capacity: Default seats per slot
        key_for: Start minute → group_key of that slot
        booked: Active enrollees per group_key
    """
    capacity: int
    key_for: Callable[[int], str]
    booked: Mapping[str, int]


def _evaluate(
    candidate: Interval,
    busy: list[Busy],
    excluded: Iterable[Interval],
    group: GroupContext | None,
    capacity: int | None,
    not_before: int | None,
) -> Slot:
    own_key = group.key_for(candidate.start) if group else None
    if not_before is not None and candidate.start < not_before:
        reason = PAST
    else:
        reason = first_conflict(candidate, busy, excluded, own_group=own_key)

    if group is None:
        return Slot(candidate.start, candidate.end, reason is None, reason)

    seats = capacity or group.capacity
    booked = group.booked.get(own_key, 0)
    if reason is None and booked >= seats:
        reason = FULL
    return Slot(candidate.start, candidate.end, reason is None, reason, seats, booked)


def generate_continuous(
    window: OpenWindow,
    duration: int,
    busy: list[Busy],
    step: int = 30,
    group: GroupContext | None = None,
    not_before: int | None = None,
) -> list[Slot]:
    """
    Step through the open window.

    Args:
        window: Resolved open window of the day
        duration: Service duration in minutes
        busy: Occupied intervals of the staff member on that day
        step: Distance between consecutive start times
        group: Set for group services; own-group members do not conflict
        not_before: Minute of day before which starts are "past"
    """
    if duration <= 0:
        raise ValueError(f"Invalid duration: {duration}. Must be positive")

    slots = []
    start = window.start
    while start + duration <= window.end:
        candidate = Interval(start, start + duration)
        slots.append(_evaluate(candidate, busy, window.excluded_intervals, group, None, not_before))
        start += step
    return slots


def generate_explicit(
    windows: list[SlotWindow],
    window: OpenWindow,
    busy: list[Busy],
    duration: int = 0,
    group: GroupContext | None = None,
    not_before: int | None = None,
) -> list[Slot]:
    """
    Check each configured window as one bookable unit.

    The unit spans the configured window, extended to start + duration when
    the service outlasts it. A unit that sticks out of the resolved open
    window is emitted as unavailable so the caller still sees the
    configuration.
    """
    slots = []
    for configured in sorted(windows, key=lambda w: w.interval):
        start, end = configured.interval
        candidate = Interval(start, max(end, start + duration))
        if not window.window.contains(candidate):
            capacity = (configured.capacity or group.capacity) if group else None
            slots.append(Slot(
                candidate.start,
                candidate.end,
                False,
                OUTSIDE_WORKING_HOURS,
                capacity,
                group.booked.get(group.key_for(candidate.start), 0) if group else None,
            ))
            continue
        slots.append(_evaluate(
            candidate, busy, window.excluded_intervals, group, configured.capacity, not_before
        ))
    return slots
