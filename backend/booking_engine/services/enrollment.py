# backend/booking_engine/services/enrollment.py
"""
Enrollment: commit a booking against a slot.

Requested → Validated → Committed
Requested → Rejected(code)

Every commit runs in one transaction that first takes a per-staff write
lock (SELECT ... FOR UPDATE on the staff row; on SQLite the transaction
itself is BEGIN IMMEDIATE). Inside it availability is re-run with the same
code the read endpoints use, then the appointment and its occupancy rows
are inserted:

  staff_time_claims  UNIQUE(staff_id, day, unit)  one row per 5-minute unit
  group_seats        UNIQUE(group_key, seat)      seat in range(capacity)

The constraints are the source of truth; a violation on flush is reported
as SLOT_NO_LONGER_AVAILABLE / CAPACITY_EXCEEDED. Rejections are terminal.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta

from redis import Redis
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..database import WRITE_LOCK_OPTION
from ..models.generated import Appointments, Clients, GroupSeats, Staff, StaffTimeClaims
from .errors import EnrollmentError, ErrorCode
from .events import BOOKING_CANCELLED, BOOKING_CREATED, appointment_payload, emit_event
from .slots.availability import (
    MODEL_EXPLICIT,
    MODEL_GRID,
    DayContext,
    day_slots,
    grid_slots,
    load_day_context,
)
from .slots.cache import BusinessConfigCache
from .slots.config import BookingConfig, get_booking_config
from .slots.conflicts import STATUS_CANCELLED
from .slots.generator import FULL
from .slots.intervals import Interval, at_minute, format_datetime, minute_of_day, weekday_index
from .slots.loader import get_client, get_service
from .slots.resolver import Closed

logger = logging.getLogger(__name__)

STATUS_PENDING = "PENDING"


@dataclass(frozen=True)
class EnrollmentResult:
    """Schedule and participant summary of a committed booking."""
    appointment_id: int
    business_id: int
    client_id: int
    service_id: int
    staff_id: int
    scheduled_for: str
    ends_at: str
    duration: int
    status: str
    slot_model: str
    start_slot: int | None = None
    slots_used: int | None = None
    group_key: str | None = None
    participants: int = 1
    capacity: int = 1

    def to_dict(self) -> dict:
        return asdict(self)


# ── Public API ───────────────────────────────────────────────────────────


def enroll_continuous(
    db: Session,
    client_id: int,
    service_id: int,
    staff_id: int,
    scheduled_for: datetime,
    notes: str | None = None,
    cache: BusinessConfigCache | None = None,
    config: BookingConfig | None = None,
    now: datetime | None = None,
    redis: Redis | None = None,
) -> EnrollmentResult:
    """
    Book the continuous / explicit-window slot starting at scheduled_for.

    Raises:
        EnrollmentError: on any rejection (nothing is written).
    """
    config = config or get_booking_config()
    now = now or datetime.now()
    scheduled_for = scheduled_for.replace(second=0, microsecond=0)

    try:
        if scheduled_for.tzinfo is not None:
            raise EnrollmentError(
                ErrorCode.INVALID_SLOT_SELECTION,
                "scheduled_for must be a local wall-clock time without timezone",
            )
        if scheduled_for < now:
            raise EnrollmentError(ErrorCode.PAST_DATETIME, "Cannot book a time in the past")

        _begin_write(db)
        service = _validate_parties(db, client_id, service_id, staff_id)
        _ensure_not_enrolled(db, client_id, service_id, scheduled_for)

        ctx = load_day_context(db, service.business_id, service_id, staff_id, scheduled_for.date(), cache)
        model, slots = day_slots(ctx, config)

        minute = minute_of_day(scheduled_for)
        slot = next((s for s in slots if s.start == minute), None)
        if slot is None and not _is_candidate_start(ctx, model, minute, config):
            raise EnrollmentError(
                ErrorCode.INVALID_SLOT_SELECTION,
                f"{format_datetime(scheduled_for)} is not a start time offered by this service",
            )
        if slot is None:
            raise EnrollmentError(
                ErrorCode.SLOT_NO_LONGER_AVAILABLE,
                f"No bookable slot starts at {format_datetime(scheduled_for)}",
            )
        if not slot.available:
            code = ErrorCode.CAPACITY_EXCEEDED if slot.reason == FULL else ErrorCode.SLOT_NO_LONGER_AVAILABLE
            raise EnrollmentError(code, f"Slot {slot.time} is unavailable: {slot.reason}")

        appointment = Appointments(
            business_id=service.business_id,
            client_id=client_id,
            service_id=service_id,
            staff_id=staff_id,
            scheduled_for=format_datetime(scheduled_for),
            duration=service.duration,
            status=STATUS_PENDING,
            notes=notes,
            group_key=ctx.group_key(minute),
            created_at=format_datetime(now),
            updated_at=format_datetime(now),
        )
        participants = _commit(
            db, ctx, appointment,
            Interval(minute, minute + service.duration),
            capacity=slot.capacity or 1,
            config=config,
        )
        result = _result(appointment, model, participants, slot.capacity or 1)
    except EnrollmentError as e:
        db.rollback()
        logger.info(
            f"Booking rejected: {e.code.value}, client_id={client_id}, "
            f"service_id={service_id}, staff_id={staff_id}, time={scheduled_for}"
        )
        raise
    except OperationalError as e:
        db.rollback()
        logger.warning(f"Booking lock timed out: staff_id={staff_id}, time={scheduled_for}: {e.orig}")
        raise EnrollmentError(ErrorCode.SLOT_NO_LONGER_AVAILABLE) from e
    except Exception:
        db.rollback()
        raise

    _notify_created(appointment, redis)
    return result


def enroll_grid(
    db: Session,
    client_id: int,
    service_id: int,
    staff_id: int,
    target_date: date,
    start_slot: int,
    slots_needed: int,
    notes: str | None = None,
    cache: BusinessConfigCache | None = None,
    config: BookingConfig | None = None,
    now: datetime | None = None,
    redis: Redis | None = None,
) -> EnrollmentResult:
    """
    Book [start_slot, start_slot + slots_needed) on the business grid.

    Raises:
        EnrollmentError: on any rejection (nothing is written).
    """
    config = config or get_booking_config()
    cache = cache or BusinessConfigCache(config=config)
    now = now or datetime.now()

    try:
        _begin_write(db)
        service = _validate_parties(db, client_id, service_id, staff_id)
        grid = cache.grid_config(db, service.business_id)

        expected = grid.slots_needed(service.duration)
        if slots_needed != expected:
            raise EnrollmentError(
                ErrorCode.INVALID_SLOT_SELECTION,
                f"Service needs {expected} slots, got {slots_needed}",
            )
        if start_slot not in grid.full_range:
            raise EnrollmentError(ErrorCode.INVALID_SLOT_SELECTION, f"Slot {start_slot} is not on the grid")

        start_minute = grid.slot_to_minutes(start_slot)
        scheduled_for = at_minute(target_date, start_minute)
        if scheduled_for < now:
            raise EnrollmentError(ErrorCode.PAST_DATETIME, "Cannot book a time in the past")

        _ensure_not_enrolled(db, client_id, service_id, scheduled_for)

        ctx = load_day_context(db, service.business_id, service_id, staff_id, target_date, cache)
        descriptor = grid_slots(ctx, grid)[start_slot - grid.full_range.start]
        if not descriptor.available:
            raise EnrollmentError(
                ErrorCode.SLOT_NO_LONGER_AVAILABLE,
                f"Slot {descriptor.time} is unavailable: {descriptor.reason}",
            )

        appointment = Appointments(
            business_id=service.business_id,
            client_id=client_id,
            service_id=service_id,
            staff_id=staff_id,
            scheduled_for=format_datetime(scheduled_for),
            duration=service.duration,
            status=STATUS_PENDING,
            notes=notes,
            start_slot=start_slot,
            slots_used=slots_needed,
            created_at=format_datetime(now),
            updated_at=format_datetime(now),
        )
        _commit(db, ctx, appointment, Interval(start_minute, start_minute + service.duration), 1, config)
        result = _result(appointment, MODEL_GRID, 1, 1)
    except EnrollmentError as e:
        db.rollback()
        logger.info(
            f"Grid booking rejected: {e.code.value}, client_id={client_id}, "
            f"service_id={service_id}, staff_id={staff_id}, date={target_date}, slot={start_slot}"
        )
        raise
    except OperationalError as e:
        db.rollback()
        logger.warning(f"Grid booking lock timed out: staff_id={staff_id}, date={target_date}: {e.orig}")
        raise EnrollmentError(ErrorCode.SLOT_NO_LONGER_AVAILABLE) from e
    except Exception:
        db.rollback()
        raise

    _notify_created(appointment, redis)
    return result


def cancel_appointment(
    db: Session,
    appointment_id: int,
    reason: str | None = None,
    now: datetime | None = None,
    redis: Redis | None = None,
) -> Appointments:
    """
    Soft-cancel an appointment and release what it held.

    The row stays; its claims (or, for a group, its seat and, with the last
    member, the shared claims) are deleted. Cancelling twice is a no-op.

    Raises:
        EnrollmentError: APPOINTMENT_NOT_FOUND
    """
    now = now or datetime.now()

    _begin_write(db)
    appointment = db.get(Appointments, appointment_id)
    if appointment is None:
        db.rollback()
        raise EnrollmentError(ErrorCode.APPOINTMENT_NOT_FOUND)
    if appointment.status == STATUS_CANCELLED:
        db.rollback()
        return appointment

    _lock_staff(db, appointment.staff_id)

    appointment.status = STATUS_CANCELLED
    appointment.cancelled_at = format_datetime(now)
    appointment.updated_at = format_datetime(now)
    appointment.cancel_reason = reason

    if appointment.group_key:
        db.query(GroupSeats).filter(GroupSeats.appointment_id == appointment.id).delete()
        db.flush()
        if not _active_group_members(db, appointment.group_key):
            db.query(StaffTimeClaims).filter(
                StaffTimeClaims.group_key == appointment.group_key
            ).delete()
    else:
        db.query(StaffTimeClaims).filter(StaffTimeClaims.appointment_id == appointment.id).delete()

    db.commit()
    db.refresh(appointment)

    logger.info(
        f"Appointment cancelled: appointment_id={appointment.id}, "
        f"staff_id={appointment.staff_id}, time={appointment.scheduled_for}"
    )
    emit_event(BOOKING_CANCELLED, {**appointment_payload(appointment), "reason": reason}, redis)
    return appointment


# ── Validation ───────────────────────────────────────────────────────────


def _begin_write(db: Session) -> None:
    """
    Open the commit transaction holding the database write lock.

    A transaction the caller left open (reads, refreshes) is committed
    first so the new one starts with BEGIN IMMEDIATE on SQLite.
    """
    if db.in_transaction():
        db.commit()
    db.connection(execution_options={WRITE_LOCK_OPTION: True})


def _is_candidate_start(ctx: DayContext, model: str, minute: int, config: BookingConfig) -> bool:
    """Whether the service ever offers a start at this minute of the day."""
    if isinstance(ctx.resolution, Closed):
        return True
    if model == MODEL_EXPLICIT:
        windows = ctx.service.slot_windows.for_weekday(weekday_index(ctx.target_date))
        return any(w.interval.start == minute for w in windows)
    return (minute - ctx.resolution.start) % config.slot_step_minutes == 0


def _validate_parties(db: Session, client_id: int, service_id: int, staff_id: int):
    """Check service, client and staff, and take the per-staff lock."""
    service = get_service(db, service_id)
    if not service:
        raise EnrollmentError(ErrorCode.SERVICE_NOT_FOUND)

    client = get_client(db, client_id)
    if not client or client.business_id != service.business_id:
        raise EnrollmentError(ErrorCode.CLIENT_NOT_FOUND)
    if not client.is_eligible:
        raise EnrollmentError(ErrorCode.CLIENT_NOT_ELIGIBLE)

    staff = _lock_staff(db, staff_id)
    if not staff or not staff.is_active or staff.business_id != service.business_id:
        raise EnrollmentError(ErrorCode.STAFF_NOT_FOUND)
    return service


def _lock_staff(db: Session, staff_id: int):
    """
    Take the per-staff write lock for the rest of the transaction.

    SQLite has no row locks (FOR UPDATE is not emitted there); the
    transaction opened by _begin_write already holds the database lock.
    """
    return db.query(Staff).filter(Staff.id == staff_id).with_for_update().first()


def _ensure_not_enrolled(db: Session, client_id: int, service_id: int, scheduled_for: datetime) -> None:
    existing = (
        db.query(Appointments.id)
        .filter(
            Appointments.client_id == client_id,
            Appointments.service_id == service_id,
            Appointments.scheduled_for == format_datetime(scheduled_for),
            Appointments.status != STATUS_CANCELLED,
        )
        .first()
    )
    if existing:
        raise EnrollmentError(
            ErrorCode.ALREADY_ENROLLED,
            f"Client already holds appointment {existing.id} for this slot",
        )


# ── Commit ───────────────────────────────────────────────────────────────


def _commit(
    db: Session,
    ctx: DayContext,
    appointment: Appointments,
    interval: Interval,
    capacity: int,
    config: BookingConfig,
) -> int:
    """
    Insert the appointment with its claims / seat and commit.

    Returns:
        Number of active participants of the slot after the commit.
    """
    day = ctx.target_date.isoformat()
    units = config.claim_units(interval)
    group_key = appointment.group_key

    db.add(appointment)
    db.flush()

    _release_stale_claims(db, ctx.staff_id, day, units)

    participants = 1
    if group_key:
        _release_stale_seats(db, group_key)
        taken = {seat for (seat,) in db.query(GroupSeats.seat).filter(GroupSeats.group_key == group_key)}
        free = [seat for seat in range(capacity) if seat not in taken]
        if not free:
            raise EnrollmentError(ErrorCode.CAPACITY_EXCEEDED, f"All {capacity} seats are taken")
        db.add(GroupSeats(group_key=group_key, seat=free[0], appointment_id=appointment.id))
        try:
            db.flush()
        except IntegrityError as e:
            logger.warning(f"Seat constraint violated for group {group_key}: {e.orig}")
            raise EnrollmentError(ErrorCode.CAPACITY_EXCEEDED) from e
        participants = len(taken) + 1

        has_claims = db.query(StaffTimeClaims.id).filter(StaffTimeClaims.group_key == group_key).first()
        if not has_claims:
            _add_claims(db, ctx.staff_id, day, units, appointment.id, group_key)
    else:
        _add_claims(db, ctx.staff_id, day, units, appointment.id, None)

    try:
        db.flush()
    except IntegrityError as e:
        logger.warning(
            f"Time claim constraint violated: staff_id={ctx.staff_id}, day={day}, "
            f"units={units.start}-{units.stop - 1}: {e.orig}"
        )
        raise EnrollmentError(ErrorCode.SLOT_NO_LONGER_AVAILABLE) from e

    db.commit()
    db.refresh(appointment)

    logger.info(
        f"Booking created: appointment_id={appointment.id}, "
        f"client_id={appointment.client_id}, service_id={appointment.service_id}, "
        f"staff_id={appointment.staff_id}, time={appointment.scheduled_for}, "
        f"participants={participants}/{capacity}"
    )
    return participants


def _add_claims(db: Session, staff_id: int, day: str, units: range, appointment_id: int, group_key: str | None):
    db.add_all([
        StaffTimeClaims(
            staff_id=staff_id,
            day=day,
            unit=unit,
            appointment_id=appointment_id,
            group_key=group_key,
        )
        for unit in units
    ])


def _release_stale_claims(db: Session, staff_id: int, day: str, units: range) -> None:
    """Delete claims in units whose owners no longer occupy (deleted clients)."""
    claims = (
        db.query(StaffTimeClaims)
        .filter(
            StaffTimeClaims.staff_id == staff_id,
            StaffTimeClaims.day == day,
            StaffTimeClaims.unit >= units.start,
            StaffTimeClaims.unit < units.stop,
        )
        .all()
    )
    owners = {(claim.group_key, claim.appointment_id) for claim in claims}
    for group_key, appointment_id in owners:
        if group_key and _active_group_members(db, group_key):
            continue
        if not group_key and _is_active(db, appointment_id):
            continue
        query = db.query(StaffTimeClaims)
        if group_key:
            query = query.filter(StaffTimeClaims.group_key == group_key)
        else:
            query = query.filter(StaffTimeClaims.appointment_id == appointment_id)
        deleted = query.delete()
        logger.info(f"Released {deleted} stale time claims of {group_key or appointment_id}")


def _release_stale_seats(db: Session, group_key: str) -> None:
    active = {appointment_id for (appointment_id,) in _active_query(db).filter(
        Appointments.group_key == group_key
    ).with_entities(Appointments.id)}
    for seat in db.query(GroupSeats).filter(GroupSeats.group_key == group_key).all():
        if seat.appointment_id not in active:
            db.delete(seat)
    db.flush()


def _active_query(db: Session):
    return (
        db.query(Appointments)
        .join(Clients, Clients.id == Appointments.client_id)
        .filter(
            Appointments.status != STATUS_CANCELLED,
            Clients.is_deleted == 0,
        )
    )


def _active_group_members(db: Session, group_key: str) -> int:
    return _active_query(db).filter(Appointments.group_key == group_key).count()


def _is_active(db: Session, appointment_id: int | None) -> bool:
    if appointment_id is None:
        return False
    return _active_query(db).filter(Appointments.id == appointment_id).count() > 0


# ── Result / notification ────────────────────────────────────────────────


def _result(appointment: Appointments, model: str, participants: int, capacity: int) -> EnrollmentResult:
    start = datetime.fromisoformat(appointment.scheduled_for)
    return EnrollmentResult(
        appointment_id=appointment.id,
        business_id=appointment.business_id,
        client_id=appointment.client_id,
        service_id=appointment.service_id,
        staff_id=appointment.staff_id,
        scheduled_for=appointment.scheduled_for,
        ends_at=format_datetime(start + timedelta(minutes=appointment.duration)),
        duration=appointment.duration,
        status=appointment.status,
        slot_model=model,
        start_slot=appointment.start_slot,
        slots_used=appointment.slots_used,
        group_key=appointment.group_key,
        participants=participants,
        capacity=capacity,
    )


def _notify_created(appointment: Appointments, redis: Redis | None) -> None:
    emit_event(BOOKING_CREATED, appointment_payload(appointment), redis)
