from datetime import date, datetime

import pytest

from booking_engine.services.errors import InvalidSlotConfiguration, InvalidTimeFormat
from booking_engine.services.slots.config import BookingConfig, GridConfig
from booking_engine.services.slots.intervals import (
    Interval,
    clip_to_day,
    intersect,
    minutes_to_time_str,
    overlaps,
    time_str_to_minutes,
    weekday_index,
)


@pytest.mark.parametrize("value,expected", [
    ("00:00", 0),
    ("09:30", 570),
    ("9:05", 545),
    ("23:59", 1439),
    ("24:00", 1440),
    ("12:15:00", 735),
])
def test_time_str_to_minutes(value, expected):
    assert time_str_to_minutes(value) == expected


@pytest.mark.parametrize("value", ["", "9", "25:00", "12:60", "24:30", "noon", None, 930])
def test_time_str_to_minutes_rejects_garbage(value):
    with pytest.raises(InvalidTimeFormat):
        time_str_to_minutes(value)


def test_minutes_to_time_str():
    assert minutes_to_time_str(0) == "00:00"
    assert minutes_to_time_str(13 * 60 + 5) == "13:05"


def test_half_open_overlap():
    assert overlaps(600, 660, 630, 690)
    assert not overlaps(600, 660, 660, 720)  # touching ends do not overlap
    assert not overlaps(660, 720, 600, 660)
    assert overlaps(600, 720, 630, 660)  # containment


def test_intersect():
    assert intersect(Interval(540, 720), Interval(600, 1080)) == Interval(600, 720)
    assert intersect(Interval(540, 600), Interval(600, 660)) is None


def test_weekday_index_is_sunday_based():
    assert weekday_index(date(2030, 6, 2)) == 0  # Sunday
    assert weekday_index(date(2030, 6, 3)) == 1  # Monday
    assert weekday_index(date(2030, 6, 8)) == 6  # Saturday


def test_clip_to_day():
    day = date(2030, 6, 3)
    assert clip_to_day(datetime(2030, 6, 3, 10), datetime(2030, 6, 3, 11), day) == Interval(600, 660)
    # Starts the evening before
    assert clip_to_day(datetime(2030, 6, 2, 23), datetime(2030, 6, 3, 1), day) == Interval(0, 60)
    # Runs past midnight
    assert clip_to_day(datetime(2030, 6, 3, 23), datetime(2030, 6, 4, 2), day) == Interval(1380, 1440)
    assert clip_to_day(datetime(2030, 6, 4, 9), datetime(2030, 6, 4, 10), day) is None


def test_clip_to_day_rounds_partial_minutes_outward():
    day = date(2030, 6, 3)
    clipped = clip_to_day(datetime(2030, 6, 3, 10, 0, 30), datetime(2030, 6, 3, 10, 5, 10), day)
    assert clipped == Interval(600, 606)


# ── Grid conversion ──────────────────────────────────────────────────────


def test_grid_defaults():
    grid = GridConfig()
    assert grid.slots_per_hour == 2
    assert grid.full_range == range(0, 48)
    assert grid.working_range == range(18, 36)


def test_slot_index_time_conversion_round_trips():
    grid = GridConfig(slot_duration_minutes=15, slots_per_day=96, working_start=36, working_end=72)
    assert grid.slot_to_time(37) == (9, 15)
    assert grid.format_slot_time(37) == "09:15"


def test_slots_needed_rounds_up():
    grid = GridConfig()
    assert grid.slots_needed(30) == 1
    assert grid.slots_needed(31) == 2
    assert grid.slots_needed(60) == 2
    with pytest.raises(ValueError):
        grid.slots_needed(0)


def test_full_range_respects_hour_bounds():
    grid = GridConfig(start_hour=8, end_hour=20)
    assert grid.full_range == range(16, 40)


def test_indices_covering():
    grid = GridConfig()
    assert grid.indices_covering(Interval(600, 660)) == range(20, 22)
    assert grid.indices_covering(Interval(610, 640)) == range(20, 22)


@pytest.mark.parametrize("fields", [
    {"slot_duration_minutes": 25},
    {"start_hour": 10, "end_hour": 10},
    {"working_start": 36, "working_end": 18},
    {"working_end": 60},
    {"slots_per_day": 100},
])
def test_grid_config_rejects_bad_layouts(fields):
    with pytest.raises(InvalidSlotConfiguration):
        GridConfig(**fields)


def test_claim_units_cover_partial_units():
    config = BookingConfig()
    assert config.claim_units(Interval(600, 660)) == range(120, 132)
    assert config.claim_units(Interval(602, 618)) == range(120, 124)
