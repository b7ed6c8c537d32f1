# backend/booking_engine/services/slots/config.py
"""
Configuration for slots calculation.

GridConfig is the only place where slot indices and wall-clock minutes are
converted into each other; the allocator and the enrollment commit path
both go through it.
"""

from dataclasses import dataclass
from functools import lru_cache
from math import ceil

from ...config import get_settings
from ..errors import InvalidSlotConfiguration
from .intervals import Interval, MINUTES_PER_DAY, minutes_to_time_str


@dataclass(frozen=True)
class BookingConfig:
    """
    Engine-wide settings.

    Attributes:
        slot_step_minutes: Continuous model step
        cache_ttl_seconds: TTL of cached business configuration
        claim_unit_minutes: Granularity of the staff_time_claims ledger
    """
    slot_step_minutes: int = 30
    cache_ttl_seconds: int = 3600
    claim_unit_minutes: int = 5

    def __post_init__(self):
        if self.slot_step_minutes <= 0:
            raise ValueError(f"slot_step_minutes must be positive, got {self.slot_step_minutes}")
        if MINUTES_PER_DAY % self.claim_unit_minutes:
            raise ValueError(f"claim_unit_minutes must divide a day, got {self.claim_unit_minutes}")

    def claim_units(self, interval: Interval) -> range:
        """Ledger units covering [start, end); partial units are claimed whole."""
        unit = self.claim_unit_minutes
        return range(interval.start // unit, ceil(interval.end / unit))


@lru_cache
def get_booking_config() -> BookingConfig:
    settings = get_settings()
    return BookingConfig(
        slot_step_minutes=settings.slot_step_minutes,
        cache_ttl_seconds=settings.config_cache_ttl_seconds,
    )


@dataclass(frozen=True)
class GridConfig:
    """
    Fixed-grid layout of one business day.

    Index 0 starts at 00:00. The grid's full range is bounded by
    start_hour/end_hour and slots_per_day; bookings may only start inside
    [working_start, working_end).
    """
    slot_duration_minutes: int = 30
    slots_per_day: int = 48
    start_hour: int = 0
    end_hour: int = 24
    working_start: int = 18  # 09:00
    working_end: int = 36    # 18:00
    time_zone: str = "UTC"

    def __post_init__(self):
        if self.slot_duration_minutes <= 0 or 60 % self.slot_duration_minutes:
            raise InvalidSlotConfiguration(
                f"slot_duration_minutes must divide an hour, got {self.slot_duration_minutes}"
            )
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise InvalidSlotConfiguration("Start hour must be less than end hour (0-24)")
        if self.slots_per_day <= 0 or self.slots_per_day * self.slot_duration_minutes > MINUTES_PER_DAY:
            raise InvalidSlotConfiguration(
                f"slots_per_day={self.slots_per_day} does not fit in a day "
                f"of {self.slot_duration_minutes}-minute slots"
            )
        if not 0 <= self.working_start < self.working_end <= self.slots_per_day:
            raise InvalidSlotConfiguration("Working hours start must be less than end and inside the grid")

    @classmethod
    def from_row(cls, row) -> "GridConfig":
        if row is None:
            return cls()
        return cls(
            slot_duration_minutes=row.slot_duration_minutes,
            slots_per_day=row.slots_per_day,
            start_hour=row.start_hour,
            end_hour=row.end_hour,
            working_start=row.working_start_slot,
            working_end=row.working_end_slot,
            time_zone=row.time_zone or "UTC",
        )

    def to_dict(self) -> dict:
        return {
            "slot_duration_minutes": self.slot_duration_minutes,
            "slots_per_day": self.slots_per_day,
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "working_start": self.working_start,
            "working_end": self.working_end,
            "time_zone": self.time_zone,
        }

    @property
    def slots_per_hour(self) -> int:
        return 60 // self.slot_duration_minutes

    @property
    def full_range(self) -> range:
        """Indices rendered for a day-long strip."""
        first = self.start_hour * self.slots_per_hour
        last = min(self.end_hour * self.slots_per_hour, self.slots_per_day)
        return range(first, last)

    @property
    def working_range(self) -> range:
        return range(self.working_start, self.working_end)

    def slots_needed(self, duration_minutes: int) -> int:
        if duration_minutes <= 0:
            raise ValueError(f"Invalid duration: {duration_minutes}. Must be positive")
        return ceil(duration_minutes / self.slot_duration_minutes)

    def slot_to_time(self, slot: int) -> tuple[int, int]:
        """Convert slot index to (hour, minute)."""
        hours = slot // self.slots_per_hour
        minutes = (slot % self.slots_per_hour) * self.slot_duration_minutes
        return hours, minutes

    def slot_to_minutes(self, slot: int) -> int:
        hours, minutes = self.slot_to_time(slot)
        return hours * 60 + minutes

    def format_slot_time(self, slot: int) -> str:
        """Convert slot index to time string "HH:MM"."""
        return minutes_to_time_str(self.slot_to_minutes(slot))

    def indices_covering(self, interval: Interval) -> range:
        """Every index whose slot shares at least one minute with the interval."""
        first = interval.start // self.slot_duration_minutes
        last = ceil(interval.end / self.slot_duration_minutes)
        return range(first, last)
