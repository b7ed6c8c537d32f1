# backend/booking_engine/services/slots/rules.py
"""
Parsed, immutable views of stored scheduling configuration.

Stored JSON comes in several shapes; everything is normalised here once,
when a row is loaded, so resolution never re-sniffs the data per request.

Service slot windows:
  ExplicitList: [{"startTime": "09:00", "endTime": "10:00", "availableDays": [1, 3]}]
  ByDay:        {"monday": [{"startTime": ...}], "general": [...]}

Staff weekly schedule:
  {"monday": {"start": "09:00", "end": "17:00",
              "lunchBreakStart": "12:00", "lunchBreakEnd": "13:00"}}
  Short keys ("mon") and numeric keys ("1", Sunday = "0") are accepted too.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date

from ..errors import InvalidTimeFormat
from .intervals import DAY_NAMES, Interval, parse_interval, time_str_to_minutes, weekday_index

logger = logging.getLogger(__name__)

SHORT_DAY_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]

SLOT_MODEL_CONTINUOUS = "continuous"
SLOT_MODEL_GRID = "grid"


def _day_index_from_key(key) -> int | None:
    key = str(key).strip().lower()
    if key in DAY_NAMES:
        return DAY_NAMES.index(key)
    if key in SHORT_DAY_NAMES:
        return SHORT_DAY_NAMES.index(key)
    if key.isdigit() and 0 <= int(key) <= 6:
        return int(key)
    return None


def _load_json(raw, default):
    if raw is None or raw == "":
        return default
    if isinstance(raw, (dict, list)):
        return raw
    return json.loads(raw)


# ── Business hours ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class DayHours:
    """Business opening hours for one weekday."""
    is_open: bool
    start: str | None = None
    end: str | None = None
    lunch_start: str | None = None
    lunch_end: str | None = None

    @classmethod
    def from_row(cls, row) -> "DayHours":
        return cls(
            is_open=bool(row.is_open),
            start=row.start_time,
            end=row.end_time,
            lunch_start=row.lunch_break_start,
            lunch_end=row.lunch_break_end,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "DayHours":
        return cls(**data)

    def to_dict(self) -> dict:
        return {
            "is_open": self.is_open,
            "start": self.start,
            "end": self.end,
            "lunch_start": self.lunch_start,
            "lunch_end": self.lunch_end,
        }


# ── Staff weekly schedule ────────────────────────────────────────────────


@dataclass(frozen=True)
class StaffDay:
    start: str | None = None
    end: str | None = None
    lunch_start: str | None = None
    lunch_end: str | None = None


def parse_staff_schedule(raw) -> dict[int, StaffDay]:
    """
    Parse a staff schedule into {weekday: StaffDay}.

    Days that are malformed are dropped with a warning; a dropped day falls
    back to business hours only.
    """
    try:
        data = _load_json(raw, {})
    except (json.JSONDecodeError, TypeError):
        logger.warning("Staff schedule is not valid JSON, ignoring it")
        return {}
    if not isinstance(data, dict):
        logger.warning("Staff schedule has unexpected shape %s, ignoring it", type(data).__name__)
        return {}

    days: dict[int, StaffDay] = {}
    for key, value in data.items():
        idx = _day_index_from_key(key)
        if idx is None or not isinstance(value, dict):
            continue
        day = StaffDay(
            start=value.get("start") or None,
            end=value.get("end") or None,
            lunch_start=value.get("lunchBreakStart") or None,
            lunch_end=value.get("lunchBreakEnd") or None,
        )
        try:
            for t in (day.start, day.end, day.lunch_start, day.lunch_end):
                if t is not None:
                    time_str_to_minutes(t)
        except InvalidTimeFormat as e:
            logger.warning("Dropping staff schedule entry %r: %s", key, e)
            continue
        days[idx] = day
    return days


# ── Service slot windows (tagged variant) ────────────────────────────────


@dataclass(frozen=True)
class SlotWindow:
    interval: Interval
    start_time: str
    end_time: str
    available_days: frozenset[int] = frozenset()
    capacity: int | None = None

    def allowed_on(self, weekday: int) -> bool:
        return not self.available_days or weekday in self.available_days


@dataclass(frozen=True)
class ExplicitList:
    """One list of windows applied to every allowed day."""
    windows: tuple[SlotWindow, ...]

    def for_weekday(self, weekday: int) -> list[SlotWindow]:
        return [w for w in self.windows if w.allowed_on(weekday)]


@dataclass(frozen=True)
class ByDay:
    """Windows keyed by weekday; `general` covers days without their own list."""
    days: dict[int, tuple[SlotWindow, ...]]
    general: tuple[SlotWindow, ...] = ()

    def for_weekday(self, weekday: int) -> list[SlotWindow]:
        windows = self.days.get(weekday, self.general)
        return [w for w in windows if w.allowed_on(weekday)]


SlotWindows = ExplicitList | ByDay


def _parse_window(item) -> SlotWindow:
    if not isinstance(item, dict):
        raise ValueError(f"slot window must be an object, got {type(item).__name__}")
    interval = parse_interval(item["startTime"], item["endTime"])
    if interval.start >= interval.end:
        raise ValueError(f"slot window {item['startTime']}-{item['endTime']} is empty")
    days = item.get("availableDays") or []
    if not isinstance(days, list) or any(not isinstance(d, int) or not 0 <= d <= 6 for d in days):
        raise ValueError(f"invalid availableDays {days!r}")
    capacity = item.get("capacity")
    if capacity is not None and (not isinstance(capacity, int) or capacity < 1):
        raise ValueError(f"invalid capacity {capacity!r}")
    return SlotWindow(
        interval=interval,
        start_time=item["startTime"],
        end_time=item["endTime"],
        available_days=frozenset(days),
        capacity=capacity,
    )


def parse_slot_windows(raw) -> SlotWindows | None:
    """
    Decide the shape of a service's slot configuration.

    Returns None when nothing is configured. Raises ValueError (or
    KeyError / InvalidTimeFormat) on any malformed content.
    """
    data = _load_json(raw, None)
    if data is None:
        return None

    if isinstance(data, list):
        if not data:
            return None
        return ExplicitList(tuple(_parse_window(item) for item in data))

    if isinstance(data, dict):
        days: dict[int, tuple[SlotWindow, ...]] = {}
        general: tuple[SlotWindow, ...] = ()
        for key, items in data.items():
            if not isinstance(items, list):
                raise ValueError(f"windows for {key!r} must be a list")
            windows = tuple(_parse_window(item) for item in items)
            if str(key).lower() == "general":
                general = windows
                continue
            idx = _day_index_from_key(key)
            if idx is None:
                raise ValueError(f"unknown day key {key!r}")
            days[idx] = windows
        if not days and not general:
            return None
        return ByDay(days, general)

    raise ValueError(f"unexpected slots shape {type(data).__name__}")


@dataclass(frozen=True)
class ServiceRules:
    """Scheduling rules of one service, parsed once at load time."""
    id: int
    business_id: int
    name: str
    duration: int
    price: float = 0.0
    available_days: frozenset[int] = frozenset()
    any_time_available: bool = True
    start_time: str | None = None
    end_time: str | None = None
    slot_windows: SlotWindows | None = None
    slot_windows_error: str | None = None
    max_capacity: int = 1
    slot_model: str = SLOT_MODEL_CONTINUOUS
    is_active: bool = True

    @classmethod
    def from_row(cls, row) -> "ServiceRules":
        try:
            days = _load_json(row.available_days, [])
            available_days = frozenset(int(d) for d in days)
        except (json.JSONDecodeError, TypeError, ValueError):
            logger.warning("Service %s has malformed available_days, treating as all days", row.id)
            available_days = frozenset()

        slot_windows = None
        slot_windows_error = None
        if not row.any_time_available and row.slots:
            try:
                slot_windows = parse_slot_windows(row.slots)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                slot_windows_error = f"{type(e).__name__}: {e}"

        return cls(
            id=row.id,
            business_id=row.business_id,
            name=row.name,
            duration=row.duration,
            price=row.price or 0.0,
            available_days=available_days,
            any_time_available=bool(row.any_time_available),
            start_time=row.start_time,
            end_time=row.end_time,
            slot_windows=slot_windows,
            slot_windows_error=slot_windows_error,
            max_capacity=max(1, row.max_capacity or 1),
            slot_model=row.slot_model or SLOT_MODEL_CONTINUOUS,
            is_active=bool(row.is_active),
        )

    @property
    def is_group(self) -> bool:
        return self.max_capacity > 1

    @property
    def uses_explicit_windows(self) -> bool:
        return not self.any_time_available and self.slot_windows is not None

    def allowed_on(self, target_date: date) -> bool:
        return not self.available_days or weekday_index(target_date) in self.available_days

    def window_capacity(self, window: SlotWindow | None = None) -> int:
        if window is not None and window.capacity:
            return window.capacity
        return self.max_capacity
