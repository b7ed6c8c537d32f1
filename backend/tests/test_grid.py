from datetime import datetime

from booking_engine.services.slots.availability import calculate_grid_availability
from booking_engine.services.slots.config import GridConfig
from booking_engine.services.slots.grid import (
    INSUFFICIENT_CONTIGUOUS_CAPACITY,
    LUNCH_BREAK,
    OCCUPIED,
    OUTSIDE_WORKING_HOURS,
    allocate_grid,
    can_start_service,
    effective_working_range,
)

from conftest import MONDAY, SUNDAY


def by_index(slots):
    return {s.index: s for s in slots}


def test_grid_scenario_contiguity():
    grid = GridConfig(slot_duration_minutes=30, slots_per_day=48, working_start=18, working_end=36)
    slots = by_index(allocate_grid(grid, 60, occupied={20}))

    assert slots[18].available
    assert slots[19].reason == INSUFFICIENT_CONTIGUOUS_CAPACITY
    assert slots[20].reason == OCCUPIED
    assert slots[21].available


def test_one_descriptor_per_index_of_full_range():
    grid = GridConfig()
    slots = allocate_grid(grid, 60, occupied=set())
    assert [s.index for s in slots] == list(range(48))
    assert slots[0].to_dict() == {
        "slot_index": 0, "time": "00:00", "available": False, "reason": OUTSIDE_WORKING_HOURS,
    }


def test_last_start_must_fit_inside_working_range():
    slots = by_index(allocate_grid(GridConfig(), 60, occupied=set()))
    assert slots[34].available  # 17:00-18:00
    assert slots[35].reason == INSUFFICIENT_CONTIGUOUS_CAPACITY
    assert slots[36].reason == OUTSIDE_WORKING_HOURS


def test_feasible_starts_satisfy_contiguity():
    grid = GridConfig()
    occupied = {19, 24, 25, 30}
    for slot in allocate_grid(grid, 90, occupied):
        if slot.available:
            span = range(slot.index, slot.index + 3)
            assert all(i in grid.working_range and i not in occupied for i in span)


def test_can_start_service():
    assert can_start_service(18, 2, set(), range(18, 36))
    assert not can_start_service(17, 2, set(), range(18, 36))
    assert not can_start_service(18, 2, {19}, range(18, 36))


def test_lunch_indices():
    slots = by_index(allocate_grid(GridConfig(), 30, occupied=set(), lunch={24, 25}))
    assert slots[24].reason == LUNCH_BREAK
    assert slots[23].available


def test_effective_working_range_narrows_to_whole_slots():
    grid = GridConfig()
    assert effective_working_range(grid, 600, 1020) == range(20, 34)
    assert effective_working_range(grid, 615, 1080) == range(21, 36)
    assert effective_working_range(grid, 420, 1320) == range(18, 36)
    assert effective_working_range(grid, 1000, 1010) == range(34, 34)


# ── Through the database ─────────────────────────────────────────────────


def test_grid_availability_end_to_end(db, seed):
    business = seed.business()
    seed.week(business, start="09:00", end="18:00")
    staff = seed.staff(business)
    service = seed.service(business, slot_model="grid", duration=60)
    client = seed.client(business)
    seed.appointment(service, staff, client, "2030-06-03 10:00:00", duration=30)

    result = calculate_grid_availability(db, business.id, service.id, staff.id, MONDAY)

    assert result["slot_model"] == "grid"
    assert result["service"]["slots_needed"] == 2
    assert result["grid"]["working_start"] == 18
    slots = {s["slot_index"]: s for s in result["slots"]}
    assert len(slots) == 48
    assert slots[18]["available"]
    assert slots[19]["reason"] == INSUFFICIENT_CONTIGUOUS_CAPACITY
    assert slots[20]["reason"] == OCCUPIED


def test_grid_honours_business_hours_and_staff_schedule(db, seed):
    business = seed.business()
    seed.week(business, start="09:00", end="18:00", lunch_start="12:00", lunch_end="13:00")
    seed.grid(business, slot_duration_minutes=15, slots_per_day=96, working_start_slot=32, working_end_slot=80)
    staff = seed.staff(business, schedule={"monday": {"start": "10:00", "end": "16:00"}})
    service = seed.service(business, slot_model="grid", duration=45)

    result = calculate_grid_availability(db, business.id, service.id, staff.id, MONDAY)
    slots = {s["slot_index"]: s for s in result["slots"]}

    assert result["service"]["slots_needed"] == 3
    assert slots[39]["reason"] == OUTSIDE_WORKING_HOURS  # 09:45, staff starts 10:00
    assert slots[40]["available"]  # 10:00
    assert slots[46]["reason"] == INSUFFICIENT_CONTIGUOUS_CAPACITY  # 11:30 runs into lunch
    assert slots[48]["reason"] == LUNCH_BREAK
    assert slots[61]["available"]  # 15:15-16:00
    assert slots[62]["reason"] == INSUFFICIENT_CONTIGUOUS_CAPACITY


def test_closed_day_grid_has_no_bookable_index(db, seed):
    business = seed.business()
    seed.week(business)
    staff = seed.staff(business)
    service = seed.service(business, slot_model="grid")

    result = calculate_grid_availability(db, business.id, service.id, staff.id, SUNDAY)

    assert result["closed"] is True
    assert not any(s["available"] for s in result["slots"])


def test_past_day_grid(db, seed):
    business = seed.business()
    seed.week(business)
    staff = seed.staff(business)
    service = seed.service(business, slot_model="grid")

    result = calculate_grid_availability(
        db, business.id, service.id, staff.id, MONDAY, now=datetime(2030, 6, 3, 12, 10)
    )
    slots = {s["slot_index"]: s for s in result["slots"]}
    assert slots[24]["reason"] == "past"
    assert slots[25]["available"]
