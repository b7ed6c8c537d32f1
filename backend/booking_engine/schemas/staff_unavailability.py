# backend/booking_engine/schemas/staff_unavailability.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator, model_validator


class StaffUnavailabilityCreate(BaseModel):
    start: datetime
    end: datetime
    reason: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("start", "end")
    @classmethod
    def validate_naive(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            raise ValueError("Times are local wall-clock, without timezone offset")
        return v

    @model_validator(mode="after")
    def validate_range(self):
        if self.start >= self.end:
            raise ValueError("start must be before end")
        return self


class StaffUnavailabilityRead(BaseModel):
    id: int
    staff_id: int

    start: datetime
    end: datetime
    reason: Optional[str] = None

    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
