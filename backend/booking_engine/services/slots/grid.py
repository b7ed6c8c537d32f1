# backend/booking_engine/services/slots/grid.py
"""
Fixed-grid allocation.

The business day is an array of uniformly sized slots indexed from 00:00.
A service needing N slots can start at index i iff every index of
[i, i + N) is free and inside the working range.
"""

from dataclasses import dataclass

from .config import GridConfig

OUTSIDE_WORKING_HOURS = "outside-working-hours"
OCCUPIED = "occupied"
LUNCH_BREAK = "lunch-break"
INSUFFICIENT_CONTIGUOUS_CAPACITY = "insufficient-contiguous-capacity"
PAST = "past"


@dataclass(frozen=True)
class GridSlot:
    index: int
    time: str
    available: bool
    reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "slot_index": self.index,
            "time": self.time,
            "available": self.available,
            "reason": self.reason,
        }


def can_start_service(
    start: int,
    slots_needed: int,
    occupied: set[int],
    working: range,
) -> bool:
    return all(i in working and i not in occupied for i in range(start, start + slots_needed))


def _blocking_reason(
    index: int,
    slots_needed: int,
    occupied: set[int],
    lunch: set[int],
    working: range,
) -> str | None:
    if index not in working:
        return OUTSIDE_WORKING_HOURS
    if index in lunch:
        return LUNCH_BREAK
    if index in occupied:
        return OCCUPIED
    if not can_start_service(index, slots_needed, occupied | lunch, working):
        return INSUFFICIENT_CONTIGUOUS_CAPACITY
    return None


def allocate_grid(
    grid: GridConfig,
    duration: int,
    occupied: set[int],
    lunch: set[int] | None = None,
    working: range | None = None,
    not_before: int | None = None,
) -> list[GridSlot]:
    """
    One descriptor per index of the grid's full range.

    Args:
        grid: Grid layout
        duration: Service duration in minutes
        occupied: Indices taken by appointments or unavailability blocks
        lunch: Indices inside a lunch break
        working: Bookable indices (defaults to the grid's working range)
        not_before: First index that is not in the past
    """
    slots_needed = grid.slots_needed(duration)
    lunch = lunch or set()
    working = grid.working_range if working is None else working

    slots = []
    for index in grid.full_range:
        if not_before is not None and index < not_before and index in working:
            reason = PAST
        else:
            reason = _blocking_reason(index, slots_needed, occupied, lunch, working)
        slots.append(GridSlot(index, grid.format_slot_time(index), reason is None, reason))
    return slots


def effective_working_range(grid: GridConfig, first_minute: int, last_minute: int) -> range:
    """Working range narrowed to whole slots inside [first_minute, last_minute)."""
    start = max(grid.working_start, -(-first_minute // grid.slot_duration_minutes))
    end = min(grid.working_end, last_minute // grid.slot_duration_minutes)
    return range(start, max(start, end))
