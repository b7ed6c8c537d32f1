# backend/booking_engine/routers/appointments.py
# PATCH = 405, DELETE = 405 (cancellation is POST /{id}/cancel, soft)

from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import Appointments as DBAppointments
from ..redis_client import get_redis
from ..schemas.appointments import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentRead,
    EnrollmentRead,
    GridAppointmentCreate,
)
from ..services.enrollment import cancel_appointment, enroll_continuous, enroll_grid
from ..services.errors import EnrollmentError
from ..services.slots import BusinessConfigCache

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("/", response_model=EnrollmentRead, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    try:
        result = enroll_continuous(
            db,
            client_id=data.client_id,
            service_id=data.service_id,
            staff_id=data.staff_id,
            scheduled_for=data.scheduled_for,
            notes=data.notes,
            cache=BusinessConfigCache(redis),
            redis=redis,
        )
    except EnrollmentError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_detail())
    return result.to_dict()


@router.post("/grid", response_model=EnrollmentRead, status_code=status.HTTP_201_CREATED)
def create_grid_appointment(
    data: GridAppointmentCreate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    try:
        result = enroll_grid(
            db,
            client_id=data.client_id,
            service_id=data.service_id,
            staff_id=data.staff_id,
            target_date=data.date,
            start_slot=data.start_slot,
            slots_needed=data.slots_needed,
            notes=data.notes,
            cache=BusinessConfigCache(redis),
            redis=redis,
        )
    except EnrollmentError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_detail())
    return result.to_dict()


@router.get("/{id}", response_model=AppointmentRead)
def get_appointment(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBAppointments, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/{id}/cancel", response_model=AppointmentRead)
def cancel(
    id: int,
    data: AppointmentCancel | None = None,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    try:
        return cancel_appointment(db, id, reason=data.reason if data else None, redis=redis)
    except EnrollmentError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_detail())


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
