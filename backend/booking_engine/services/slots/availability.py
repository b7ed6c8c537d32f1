# backend/booking_engine/services/slots/availability.py
"""
Service availability calculation for one (business, service, staff, date).

Takes into account:
- Business hours (cached per business)
- Service day/time restrictions and explicit windows
- Staff weekly schedule and unavailability blocks
- Existing appointments (read fresh, never cached)

Both the read endpoints and the enrollment commit path go through
load_day_context(), so a booking is validated by exactly the rules that
produced the slot it was made from.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from math import ceil

from sqlalchemy.orm import Session

from ..errors import EnrollmentError, ErrorCode
from .cache import BusinessConfigCache
from .config import BookingConfig, GridConfig, get_booking_config
from .conflicts import (
    Busy,
    busy_from_appointments,
    busy_from_unavailability,
    count_group_members,
    group_key_for,
    occupied_indices,
)
from .generator import GroupContext, Slot, generate_continuous, generate_explicit
from .grid import GridSlot, allocate_grid, effective_working_range
from .intervals import MINUTES_PER_DAY, at_minute, minute_of_day, weekday_index
from .loader import (
    get_business,
    get_staff,
    load_service_rules,
    load_staff_schedule,
    staff_appointments,
    staff_unavailability,
)
from .resolver import Closed, OpenWindow, resolve_window
from .rules import ServiceRules

logger = logging.getLogger(__name__)

MODEL_CONTINUOUS = "continuous"
MODEL_EXPLICIT = "explicit"
MODEL_GRID = "grid"


@dataclass
class DayContext:
    """Everything resolution needs about one staff member's day."""
    business_id: int
    staff_id: int
    target_date: date
    service: ServiceRules
    resolution: Closed | OpenWindow
    appointments: list
    busy: list[Busy]
    group: GroupContext | None = None

    def group_key(self, start_minute: int) -> str | None:
        if self.group is None:
            return None
        return self.group.key_for(start_minute)


def load_day_context(
    db: Session,
    business_id: int,
    service_id: int,
    staff_id: int,
    target_date: date,
    cache: BusinessConfigCache | None = None,
) -> DayContext:
    """
    Load and resolve one day.

    Raises:
        EnrollmentError: BUSINESS_NOT_FOUND / SERVICE_NOT_FOUND / STAFF_NOT_FOUND
    """
    cache = cache or BusinessConfigCache()

    if not get_business(db, business_id):
        raise EnrollmentError(ErrorCode.BUSINESS_NOT_FOUND)

    service = load_service_rules(db, service_id)
    if not service or service.business_id != business_id:
        raise EnrollmentError(ErrorCode.SERVICE_NOT_FOUND)

    staff = get_staff(db, staff_id)
    if not staff or staff.business_id != business_id:
        raise EnrollmentError(ErrorCode.STAFF_NOT_FOUND)

    resolution = resolve_window(
        target_date,
        cache.business_hours(db, business_id),
        service,
        load_staff_schedule(db, staff_id),
    )

    appointments = staff_appointments(db, staff_id, target_date)
    busy = busy_from_appointments(appointments, target_date)
    busy += busy_from_unavailability(staff_unavailability(db, staff_id, target_date), target_date)

    group = None
    if service.is_group:
        group = GroupContext(
            capacity=service.max_capacity,
            key_for=lambda minute: group_key_for(service.id, staff_id, at_minute(target_date, minute)),
            booked=count_group_members(appointments),
        )

    return DayContext(business_id, staff_id, target_date, service, resolution, appointments, busy, group)


# ── Continuous / explicit ────────────────────────────────────────────────


def day_slots(
    ctx: DayContext,
    config: BookingConfig | None = None,
    not_before: int | None = None,
) -> tuple[str, list[Slot]]:
    """
    Candidate slots of the day and the model that produced them.

    Explicit windows are used when the service configures them; a service
    whose windows failed to parse is served by the continuous model.
    """
    config = config or get_booking_config()
    service = ctx.service

    if service.slot_windows_error:
        logger.warning(
            f"Service {service.id} ({service.name}) has malformed slot windows, "
            f"falling back to continuous slots: {service.slot_windows_error}"
        )

    if isinstance(ctx.resolution, Closed):
        model = MODEL_EXPLICIT if service.uses_explicit_windows else MODEL_CONTINUOUS
        return model, []

    if service.uses_explicit_windows:
        windows = service.slot_windows.for_weekday(weekday_index(ctx.target_date))
        return MODEL_EXPLICIT, generate_explicit(
            windows, ctx.resolution, ctx.busy, service.duration, ctx.group, not_before
        )

    return MODEL_CONTINUOUS, generate_continuous(
        ctx.resolution,
        service.duration,
        ctx.busy,
        step=config.slot_step_minutes,
        group=ctx.group,
        not_before=not_before,
    )


def calculate_service_availability(
    db: Session,
    business_id: int,
    service_id: int,
    staff_id: int,
    target_date: date,
    cache: BusinessConfigCache | None = None,
    config: BookingConfig | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Calculate time slots for a service with one staff member.

    Args:
        now: When given, starts before this moment are marked "past".

    Returns:
        Dict with ordered slots (for SlotsDayResponse).
    """
    config = config or get_booking_config()
    ctx = load_day_context(db, business_id, service_id, staff_id, target_date, cache)
    model, slots = day_slots(ctx, config, _minute_cutoff(target_date, now, MINUTES_PER_DAY))

    return {
        "business_id": business_id,
        "service_id": service_id,
        "staff_id": staff_id,
        "date": target_date.isoformat(),
        "slot_model": model,
        "service": _service_metadata(ctx.service, ceil(ctx.service.duration / config.slot_step_minutes)),
        **_closed_fields(ctx.resolution),
        "slots": [slot.to_dict() for slot in slots],
    }


# ── Grid ─────────────────────────────────────────────────────────────────


def grid_slots(
    ctx: DayContext,
    grid: GridConfig,
    not_before: int | None = None,
) -> list[GridSlot]:
    """Grid descriptors of the day; a closed day has no working indices."""
    lunch: set[int] = set()
    if isinstance(ctx.resolution, OpenWindow):
        working = effective_working_range(grid, ctx.resolution.start, ctx.resolution.end)
        for interval in ctx.resolution.excluded_intervals:
            lunch.update(grid.indices_covering(interval))
    else:
        working = range(0)

    return allocate_grid(
        grid,
        ctx.service.duration,
        occupied_indices(ctx.busy, grid),
        lunch=lunch,
        working=working,
        not_before=not_before,
    )


def calculate_grid_availability(
    db: Session,
    business_id: int,
    service_id: int,
    staff_id: int,
    target_date: date,
    cache: BusinessConfigCache | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Calculate fixed-grid slot descriptors for a service with one staff member.

    Returns:
        Dict with one descriptor per grid index (for SlotsGridResponse).
    """
    cache = cache or BusinessConfigCache()
    ctx = load_day_context(db, business_id, service_id, staff_id, target_date, cache)
    grid = cache.grid_config(db, business_id)

    not_before = None
    cutoff = _minute_cutoff(target_date, now, MINUTES_PER_DAY)
    if cutoff is not None:
        not_before = -(-cutoff // grid.slot_duration_minutes)

    slots_needed = grid.slots_needed(ctx.service.duration)
    return {
        "business_id": business_id,
        "service_id": service_id,
        "staff_id": staff_id,
        "date": target_date.isoformat(),
        "slot_model": MODEL_GRID,
        "service": _service_metadata(ctx.service, slots_needed),
        "grid": grid.to_dict(),
        **_closed_fields(ctx.resolution),
        "slots": [slot.to_dict() for slot in grid_slots(ctx, grid, not_before)],
    }


# ── Helpers ──────────────────────────────────────────────────────────────


def _minute_cutoff(target_date: date, now: datetime | None, day_end: int) -> int | None:
    """First minute of target_date that is not in the past, or None for future days."""
    if now is None or target_date > now.date():
        return None
    if target_date < now.date():
        return day_end
    return minute_of_day(now)


def _closed_fields(resolution: Closed | OpenWindow) -> dict:
    if isinstance(resolution, Closed):
        return {"closed": True, "reason": resolution.reason, "window": None}
    return {"closed": False, "reason": None, "window": resolution.window.label()}


def _service_metadata(service: ServiceRules, slots_needed: int) -> dict:
    return {
        "id": service.id,
        "name": service.name,
        "duration": service.duration,
        "slots_needed": slots_needed,
        "price": service.price,
        "max_capacity": service.max_capacity,
    }
