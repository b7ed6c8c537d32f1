# backend/booking_engine/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class ServiceSummary(BaseModel):
    """Service metadata echoed with every availability answer."""
    id: int
    name: str
    duration: int = Field(description="Minutes")
    slots_needed: int
    price: float
    max_capacity: int = 1

    model_config = {"from_attributes": True}


class TimeSlot(BaseModel):
    """One candidate start time (continuous / explicit models)."""
    time: str  # "HH:MM"
    end_time: str
    available: bool
    reason: Optional[str] = None
    capacity: Optional[int] = None
    booked: Optional[int] = None

    model_config = {"from_attributes": True}


class GridSlotInfo(BaseModel):
    """One index of the business grid."""
    slot_index: int
    time: str  # "HH:MM"
    available: bool
    reason: Optional[str] = None

    model_config = {"from_attributes": True}


class GridLayout(BaseModel):
    slot_duration_minutes: int
    slots_per_day: int
    start_hour: int
    end_hour: int
    working_start: int
    working_end: int
    time_zone: str

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Ordered slots of one day for a service with one staff member."""
    business_id: int
    service_id: int
    staff_id: int
    date: date
    slot_model: str = Field(description="continuous | explicit")
    service: ServiceSummary
    closed: bool
    reason: Optional[str] = Field(None, description="Why the day is closed")
    window: Optional[str] = Field(None, description="Effective window, 'HH:MM-HH:MM'")
    slots: list[TimeSlot]

    model_config = {"from_attributes": True}


class SlotsGridResponse(BaseModel):
    """One descriptor per grid index."""
    business_id: int
    service_id: int
    staff_id: int
    date: date
    slot_model: str = "grid"
    service: ServiceSummary
    grid: GridLayout
    closed: bool
    reason: Optional[str] = None
    window: Optional[str] = None
    slots: list[GridSlotInfo]

    model_config = {"from_attributes": True}


class CacheInvalidateResponse(BaseModel):
    business_id: int
    deleted_keys: int
