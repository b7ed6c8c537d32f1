import json
from types import SimpleNamespace

import pytest

from booking_engine.services.slots.rules import (
    ByDay,
    ExplicitList,
    ServiceRules,
    parse_slot_windows,
    parse_staff_schedule,
)


def service_row(**overrides):
    fields = dict(
        id=1, business_id=1, name="Haircut", duration=60, price=10.0,
        available_days="[]", any_time_available=1, start_time=None, end_time=None,
        slots=None, max_capacity=1, slot_model="continuous", is_active=1,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_list_shape_is_explicit_list():
    windows = parse_slot_windows('[{"startTime": "09:00", "endTime": "10:00", "capacity": 4}]')
    assert isinstance(windows, ExplicitList)
    assert windows.windows[0].capacity == 4


def test_day_keyed_shape_is_by_day():
    windows = parse_slot_windows({"Monday": [{"startTime": "09:00", "endTime": "10:00"}], "3": []})
    assert isinstance(windows, ByDay)
    assert set(windows.days) == {1, 3}


def test_empty_configuration_is_none():
    assert parse_slot_windows(None) is None
    assert parse_slot_windows("[]") is None
    assert parse_slot_windows({}) is None


@pytest.mark.parametrize("raw", [
    '[{"startTime": "09:00"}]',
    '[{"startTime": "10:00", "endTime": "09:00"}]',
    '[{"startTime": "09:00", "endTime": "10:00", "availableDays": [9]}]',
    '{"funday": [{"startTime": "09:00", "endTime": "10:00"}]}',
    '"09:00-10:00"',
    '{not json',
])
def test_malformed_configuration_raises(raw):
    with pytest.raises((ValueError, KeyError)):
        parse_slot_windows(raw)


def test_service_rules_capture_parse_error_instead_of_raising():
    rules = ServiceRules.from_row(service_row(any_time_available=0, slots='[{"startTime": "x"}]'))
    assert rules.slot_windows is None
    assert rules.slot_windows_error
    assert not rules.uses_explicit_windows


def test_any_time_service_ignores_configured_windows():
    rules = ServiceRules.from_row(service_row(slots='[{"startTime": "09:00", "endTime": "10:00"}]'))
    assert rules.slot_windows is None
    assert rules.slot_windows_error is None


def test_service_rules_fields():
    rules = ServiceRules.from_row(service_row(available_days="[1, 3]", max_capacity=5))
    assert rules.available_days == frozenset({1, 3})
    assert rules.is_group
    assert rules.window_capacity() == 5


def test_staff_schedule_keys_and_bad_days():
    schedule = parse_staff_schedule(json.dumps({
        "monday": {"start": "09:00", "end": "17:00", "lunchBreakStart": "12:00", "lunchBreakEnd": "12:30"},
        "tue": {"start": "10:00", "end": "14:00"},
        "5": {"start": "nope", "end": "14:00"},
        "holiday": {"start": "10:00", "end": "11:00"},
    }))
    assert set(schedule) == {1, 2}
    assert schedule[1].lunch_start == "12:00"


def test_staff_schedule_garbage_is_empty():
    assert parse_staff_schedule("not json") == {}
    assert parse_staff_schedule("[1, 2]") == {}
    assert parse_staff_schedule(None) == {}
