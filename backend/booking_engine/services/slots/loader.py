# backend/booking_engine/services/slots/loader.py
"""
Tenant and appointment store reads used by resolution and commit.

Rows are turned into the immutable views of rules.py / config.py here, so
nothing downstream touches the ORM.
"""

from datetime import date, timedelta

from sqlalchemy.orm import Session

from ...models.generated import (
    Appointments,
    BusinessHours,
    Businesses,
    BusinessSlotConfigurations,
    Clients,
    Services,
    Staff,
    StaffAvailability,
    StaffUnavailability,
)
from .config import GridConfig
from .conflicts import STATUS_CANCELLED
from .intervals import day_bounds
from .rules import DayHours, ServiceRules, StaffDay, parse_staff_schedule


# ── Tenant store ─────────────────────────────────────────────────────────


def get_business(db: Session, business_id: int):
    return db.query(Businesses).filter(Businesses.id == business_id).first()


def load_business_hours(db: Session, business_id: int) -> dict[int, DayHours]:
    rows = db.query(BusinessHours).filter(BusinessHours.business_id == business_id).all()
    return {row.day_of_week: DayHours.from_row(row) for row in rows}


def get_slot_configuration(db: Session, business_id: int):
    return (
        db.query(BusinessSlotConfigurations)
        .filter(BusinessSlotConfigurations.business_id == business_id)
        .first()
    )


def load_grid_config(db: Session, business_id: int) -> GridConfig:
    """Stored grid layout, or the defaults when the business has none."""
    return GridConfig.from_row(get_slot_configuration(db, business_id))


def get_service(db: Session, service_id: int):
    """Get active service by ID."""
    return db.query(Services).filter(
        Services.id == service_id,
        Services.is_active == 1,
    ).first()


def load_service_rules(db: Session, service_id: int) -> ServiceRules | None:
    row = get_service(db, service_id)
    return ServiceRules.from_row(row) if row else None


def get_staff(db: Session, staff_id: int):
    """Get active staff member by ID."""
    return db.query(Staff).filter(
        Staff.id == staff_id,
        Staff.is_active == 1,
    ).first()


def load_staff_schedule(db: Session, staff_id: int) -> dict[int, StaffDay]:
    row = db.query(StaffAvailability).filter(StaffAvailability.staff_id == staff_id).first()
    return parse_staff_schedule(row.schedule) if row else {}


def get_client(db: Session, client_id: int):
    return db.query(Clients).filter(
        Clients.id == client_id,
        Clients.is_deleted == 0,
    ).first()


# ── Appointment store ────────────────────────────────────────────────────


def staff_appointments(db: Session, staff_id: int, target_date: date) -> list:
    """
    Active appointments of a staff member that may touch target_date.

    The previous day is included so bookings running past midnight are seen;
    appointments of soft-deleted clients never occupy.
    """
    _, next_day = day_bounds(target_date)
    prev_day, _ = day_bounds(target_date - timedelta(days=1))
    return (
        db.query(Appointments)
        .join(Clients, Clients.id == Appointments.client_id)
        .filter(
            Appointments.staff_id == staff_id,
            Appointments.scheduled_for >= prev_day,
            Appointments.scheduled_for < next_day,
            Appointments.status != STATUS_CANCELLED,
            Clients.is_deleted == 0,
        )
        .order_by(Appointments.scheduled_for)
        .all()
    )


def staff_unavailability(db: Session, staff_id: int, target_date: date) -> list:
    """Unavailability blocks of a staff member overlapping target_date."""
    day_start, next_day = day_bounds(target_date)
    return (
        db.query(StaffUnavailability)
        .filter(
            StaffUnavailability.staff_id == staff_id,
            StaffUnavailability.start < next_day,
            StaffUnavailability.end > day_start,
        )
        .order_by(StaffUnavailability.start)
        .all()
    )
