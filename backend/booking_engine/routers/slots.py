# backend/booking_engine/routers/slots.py
"""
Slots API endpoints.

GET  /slots/day        - Continuous / explicit-window slots for a day
GET  /slots/grid       - Fixed-grid descriptors for a day
POST /slots/invalidate - Drop cached business configuration
"""

from datetime import date, datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import get_redis
from ..schemas.slots import (
    CacheInvalidateResponse,
    SlotsDayResponse,
    SlotsGridResponse,
)
from ..services.errors import EnrollmentError
from ..services.slots import (
    BusinessConfigCache,
    calculate_grid_availability,
    calculate_service_availability,
    invalidate_business_cache,
)


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    business_id: int,
    service_id: int,
    staff_id: int,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Get every candidate start time for a service with one staff member."""
    try:
        result = calculate_service_availability(
            db=db,
            business_id=business_id,
            service_id=service_id,
            staff_id=staff_id,
            target_date=target_date,
            cache=BusinessConfigCache(redis),
            now=datetime.now(),
        )
    except EnrollmentError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_detail())

    return SlotsDayResponse(**result)


@router.get("/grid", response_model=SlotsGridResponse)
def get_slots_grid(
    business_id: int,
    service_id: int,
    staff_id: int,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Get one descriptor per grid index for a service with one staff member."""
    try:
        result = calculate_grid_availability(
            db=db,
            business_id=business_id,
            service_id=service_id,
            staff_id=staff_id,
            target_date=target_date,
            cache=BusinessConfigCache(redis),
            now=datetime.now(),
        )
    except EnrollmentError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_detail())

    return SlotsGridResponse(**result)


@router.post("/invalidate", response_model=CacheInvalidateResponse)
def invalidate_slots_cache(
    business_id: int,
    redis: Redis = Depends(get_redis),
):
    """Manually invalidate cached configuration of a business (admin endpoint)."""
    deleted = invalidate_business_cache(redis, business_id)

    return CacheInvalidateResponse(business_id=business_id, deleted_keys=deleted)
