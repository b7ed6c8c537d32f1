# backend/booking_engine/schemas/business_hours.py

from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from ..services.slots.intervals import time_str_to_minutes


class BusinessHoursDay(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday … 6 = Saturday")
    is_open: bool = True
    start_time: Optional[str] = Field(None, description="HH:MM")
    end_time: Optional[str] = Field(None, description="HH:MM")
    lunch_break_start: Optional[str] = None
    lunch_break_end: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("start_time", "end_time", "lunch_break_start", "lunch_break_end")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        time_str_to_minutes(v)
        return v

    @model_validator(mode="after")
    def validate_window(self):
        if self.is_open:
            if not self.start_time or not self.end_time:
                raise ValueError("Open days need start_time and end_time")
            if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
                raise ValueError("start_time must be before end_time")
        if bool(self.lunch_break_start) != bool(self.lunch_break_end):
            raise ValueError("Lunch break needs both start and end")
        return self


class BusinessHoursUpdate(BaseModel):
    days: list[BusinessHoursDay]

    @field_validator("days")
    @classmethod
    def validate_unique_days(cls, v: list[BusinessHoursDay]) -> list[BusinessHoursDay]:
        seen = [d.day_of_week for d in v]
        if len(seen) != len(set(seen)):
            raise ValueError("Each day_of_week may appear once")
        return v


class BusinessHoursRead(BaseModel):
    business_id: int
    days: list[BusinessHoursDay]
