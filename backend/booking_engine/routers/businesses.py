# backend/booking_engine/routers/businesses.py
"""
Business scheduling settings.

GET/PUT        /businesses/{id}/hours              - weekly opening hours
GET/PUT/DELETE /businesses/{id}/slot-configuration - grid layout

Every write invalidates the business's cached configuration.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import (
    BusinessHours as DBBusinessHours,
    BusinessSlotConfigurations as DBSlotConfigurations,
)
from ..redis_client import get_redis
from ..schemas.business_hours import BusinessHoursDay, BusinessHoursRead, BusinessHoursUpdate
from ..schemas.slot_configuration import SlotConfigurationRead, SlotConfigurationUpdate
from ..services.slots import GridConfig, invalidate_business_cache
from ..services.slots.intervals import format_datetime
from ..services.slots.loader import get_business, get_slot_configuration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/businesses", tags=["businesses"])


def _require_business(db: Session, business_id: int):
    business = get_business(db, business_id)
    if not business:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "BUSINESS_NOT_FOUND", "message": "Business not found"},
        )
    return business


# ── Business hours ───────────────────────────────────────────────────────


@router.get("/{business_id}/hours", response_model=BusinessHoursRead)
def get_business_hours(business_id: int, db: Session = Depends(get_db)):
    _require_business(db, business_id)
    rows = (
        db.query(DBBusinessHours)
        .filter(DBBusinessHours.business_id == business_id)
        .order_by(DBBusinessHours.day_of_week)
        .all()
    )
    return BusinessHoursRead(
        business_id=business_id,
        days=[BusinessHoursDay.model_validate(row) for row in rows],
    )


@router.put("/{business_id}/hours", response_model=BusinessHoursRead)
def update_business_hours(
    business_id: int,
    data: BusinessHoursUpdate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Upsert the given weekdays; weekdays not sent are left untouched."""
    _require_business(db, business_id)

    existing = {
        row.day_of_week: row
        for row in db.query(DBBusinessHours).filter(DBBusinessHours.business_id == business_id)
    }
    for day in data.days:
        row = existing.get(day.day_of_week)
        if row is None:
            row = DBBusinessHours(business_id=business_id, day_of_week=day.day_of_week)
            db.add(row)
        row.is_open = 1 if day.is_open else 0
        row.start_time = day.start_time
        row.end_time = day.end_time
        row.lunch_break_start = day.lunch_break_start
        row.lunch_break_end = day.lunch_break_end

    db.commit()
    invalidate_business_cache(redis, business_id)
    logger.info(f"Business hours updated: business_id={business_id}, days={len(data.days)}")

    return get_business_hours(business_id, db)


# ── Slot configuration ───────────────────────────────────────────────────


def _configuration_read(business_id: int, row) -> SlotConfigurationRead:
    if row is None:
        grid = GridConfig()
        return SlotConfigurationRead(
            business_id=business_id,
            slot_duration_minutes=grid.slot_duration_minutes,
            slots_per_day=grid.slots_per_day,
            start_hour=grid.start_hour,
            end_hour=grid.end_hour,
            working_start_slot=grid.working_start,
            working_end_slot=grid.working_end,
            time_zone=grid.time_zone,
            is_default=True,
        )
    return SlotConfigurationRead.model_validate(row)


@router.get("/{business_id}/slot-configuration", response_model=SlotConfigurationRead)
def get_slot_configuration_endpoint(business_id: int, db: Session = Depends(get_db)):
    """Stored grid layout, or the defaults flagged is_default."""
    _require_business(db, business_id)
    return _configuration_read(business_id, get_slot_configuration(db, business_id))


@router.put("/{business_id}/slot-configuration", response_model=SlotConfigurationRead)
def update_slot_configuration(
    business_id: int,
    data: SlotConfigurationUpdate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    _require_business(db, business_id)

    row = get_slot_configuration(db, business_id)
    if row is None:
        row = DBSlotConfigurations(business_id=business_id)
        db.add(row)
    for field, value in data.model_dump().items():
        setattr(row, field, value)
    row.updated_at = format_datetime(datetime.now())

    db.commit()
    db.refresh(row)
    invalidate_business_cache(redis, business_id)
    logger.info(f"Slot configuration saved: business_id={business_id}")

    return _configuration_read(business_id, row)


@router.delete("/{business_id}/slot-configuration", response_model=SlotConfigurationRead)
def delete_slot_configuration(
    business_id: int,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Revert to the default grid layout."""
    _require_business(db, business_id)

    row = get_slot_configuration(db, business_id)
    if row is not None:
        db.delete(row)
        db.commit()
    invalidate_business_cache(redis, business_id)
    logger.info(f"Slot configuration reset to defaults: business_id={business_id}")

    return _configuration_read(business_id, None)
