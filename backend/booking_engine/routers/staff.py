# backend/booking_engine/routers/staff.py
# Unavailability blocks: PATCH = 405, DELETE = ALLOWED (hard)

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import (
    Staff as DBStaff,
    StaffUnavailability as DBStaffUnavailability,
)
from ..schemas.staff_unavailability import (
    StaffUnavailabilityCreate,
    StaffUnavailabilityRead,
)
from ..services.slots.intervals import format_datetime

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/staff", tags=["staff"])


def _require_staff(db: Session, staff_id: int):
    staff = db.get(DBStaff, staff_id)
    if not staff:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "STAFF_NOT_FOUND", "message": "Staff not found"},
        )
    return staff


@router.get("/{staff_id}/unavailability", response_model=list[StaffUnavailabilityRead])
def list_unavailability(staff_id: int, db: Session = Depends(get_db)):
    _require_staff(db, staff_id)
    return (
        db.query(DBStaffUnavailability)
        .filter(DBStaffUnavailability.staff_id == staff_id)
        .order_by(DBStaffUnavailability.start)
        .all()
    )


@router.post(
    "/{staff_id}/unavailability",
    response_model=StaffUnavailabilityRead,
    status_code=status.HTTP_201_CREATED,
)
def create_unavailability(
    staff_id: int,
    data: StaffUnavailabilityCreate,
    db: Session = Depends(get_db),
):
    _require_staff(db, staff_id)
    obj = DBStaffUnavailability(
        staff_id=staff_id,
        start=format_datetime(data.start),
        end=format_datetime(data.end),
        reason=data.reason,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info(f"Unavailability added: staff_id={staff_id}, {obj.start} → {obj.end}")
    return obj


@router.delete("/{staff_id}/unavailability/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_unavailability(staff_id: int, block_id: int, db: Session = Depends(get_db)):
    obj = db.get(DBStaffUnavailability, block_id)
    if not obj or obj.staff_id != staff_id:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(obj)
    db.commit()


@router.patch("/{staff_id}/unavailability/{block_id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
