# backend/booking_engine/schemas/slot_configuration.py

from typing import Optional
from pydantic import BaseModel, Field, model_validator

from ..services.errors import InvalidSlotConfiguration
from ..services.slots.config import GridConfig


class SlotConfigurationUpdate(BaseModel):
    slot_duration_minutes: int = Field(30, gt=0, le=60)
    slots_per_day: int = Field(48, gt=0)
    start_hour: int = Field(0, ge=0, le=23)
    end_hour: int = Field(24, ge=1, le=24)
    working_start_slot: int = Field(18, ge=0)
    working_end_slot: int = Field(36, gt=0)
    time_zone: str = "UTC"

    @model_validator(mode="after")
    def validate_layout(self):
        try:
            self.to_grid()
        except InvalidSlotConfiguration as e:
            raise ValueError(str(e)) from e
        return self

    def to_grid(self) -> GridConfig:
        return GridConfig(
            slot_duration_minutes=self.slot_duration_minutes,
            slots_per_day=self.slots_per_day,
            start_hour=self.start_hour,
            end_hour=self.end_hour,
            working_start=self.working_start_slot,
            working_end=self.working_end_slot,
            time_zone=self.time_zone,
        )


class SlotConfigurationRead(BaseModel):
    business_id: int
    slot_duration_minutes: int
    slots_per_day: int
    start_hour: int
    end_hour: int
    working_start_slot: int
    working_end_slot: int
    time_zone: str
    is_default: bool = False
    updated_at: Optional[str] = None

    model_config = {"from_attributes": True}
