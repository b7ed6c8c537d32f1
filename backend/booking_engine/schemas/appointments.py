# backend/booking_engine/schemas/appointments.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class AppointmentCreate(BaseModel):
    """Continuous / explicit-window commit."""
    client_id: int
    service_id: int
    staff_id: int
    scheduled_for: datetime = Field(description="Local wall-clock start, no timezone")
    notes: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("scheduled_for")
    @classmethod
    def validate_naive(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            raise ValueError("scheduled_for must be a local time without timezone offset")
        return v


class GridAppointmentCreate(BaseModel):
    """Fixed-grid commit."""
    client_id: int
    service_id: int
    staff_id: int
    date: date
    start_slot: int = Field(ge=0)
    slots_needed: int = Field(ge=1)
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class AppointmentCancel(BaseModel):
    reason: Optional[str] = None


class EnrollmentRead(BaseModel):
    """Schedule and participant summary of a committed booking."""
    appointment_id: int
    business_id: int
    client_id: int
    service_id: int
    staff_id: int
    scheduled_for: datetime
    ends_at: datetime
    duration: int
    status: str
    slot_model: str
    start_slot: Optional[int] = None
    slots_used: Optional[int] = None
    group_key: Optional[str] = None
    participants: int = 1
    capacity: int = 1

    model_config = {"from_attributes": True}


class AppointmentRead(BaseModel):
    id: int

    business_id: int
    client_id: int
    service_id: int
    staff_id: int

    scheduled_for: datetime
    duration: int
    status: str
    notes: Optional[str] = None

    start_slot: Optional[int] = None
    slots_used: Optional[int] = None
    group_key: Optional[str] = None

    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
