import pytest
from fastapi.testclient import TestClient

from booking_engine.database import get_db
from booking_engine.main import app
from booking_engine.redis_client import get_redis


@pytest.fixture
def client(session_factory, redis_mock):
    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_redis] = lambda: redis_mock
    yield TestClient(app)
    app.dependency_overrides.clear()


def day_params(business, service, staff, day="2030-06-03"):
    return {"business_id": business.id, "service_id": service.id, "staff_id": staff.id, "date": day}


def booking(client_row, service, staff, when="2030-06-03T10:00:00"):
    return {"client_id": client_row.id, "service_id": service.id, "staff_id": staff.id, "scheduled_for": when}


def test_health(client, redis_mock):
    redis_mock.ping.return_value = True
    assert client.get("/health").json() == {"status": "ok", "redis": True}


# ── Slots ────────────────────────────────────────────────────────────────


def test_day_slots(client, salon):
    business, staff, service, _ = salon
    response = client.get("/slots/day", params=day_params(business, service, staff))

    assert response.status_code == 200
    body = response.json()
    assert body["slot_model"] == "continuous"
    assert body["window"] == "09:00-18:00"
    by_time = {s["time"]: s for s in body["slots"]}
    assert by_time["11:00"]["available"]
    assert by_time["11:30"]["reason"] == "lunch-break"


def test_day_slots_closed_day(client, salon):
    business, staff, service, _ = salon
    body = client.get("/slots/day", params=day_params(business, service, staff, "2030-06-02")).json()
    assert body["closed"] is True
    assert body["reason"] == "business-closed"
    assert body["slots"] == []


def test_day_slots_unknown_service(client, salon):
    business, staff, _, _ = salon
    response = client.get("/slots/day", params={
        "business_id": business.id, "service_id": 999, "staff_id": staff.id, "date": "2030-06-03",
    })
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "SERVICE_NOT_FOUND"


def test_grid_slots(client, seed):
    business = seed.business()
    seed.week(business)
    staff = seed.staff(business)
    service = seed.service(business, slot_model="grid", duration=60)

    body = client.get("/slots/grid", params=day_params(business, service, staff)).json()

    assert body["grid"]["slot_duration_minutes"] == 30
    assert len(body["slots"]) == 48
    assert body["slots"][18] == {"slot_index": 18, "time": "09:00", "available": True, "reason": None}


def test_invalidate(client, redis_mock):
    redis_mock.delete.return_value = 1
    body = client.post("/slots/invalidate", params={"business_id": 5}).json()
    assert body == {"business_id": 5, "deleted_keys": 1}


# ── Appointments ─────────────────────────────────────────────────────────


def test_create_and_read_appointment(client, salon, redis_mock):
    _, staff, service, client_row = salon

    response = client.post("/appointments/", json=booking(client_row, service, staff))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "PENDING"
    assert body["ends_at"] == "2030-06-03T11:00:00"
    redis_mock.rpush.assert_called_once()

    read = client.get(f"/appointments/{body['appointment_id']}").json()
    assert read["scheduled_for"] == "2030-06-03T10:00:00"
    assert read["duration"] == 60


def test_double_booking_is_409(client, seed, salon):
    business, staff, service, client_row = salon
    other = seed.client(business, name="Other")
    client.post("/appointments/", json=booking(client_row, service, staff))

    response = client.post("/appointments/", json=booking(other, service, staff, "2030-06-03T10:30:00"))

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "SLOT_NO_LONGER_AVAILABLE"


def test_past_booking_is_400(client, salon):
    _, staff, service, client_row = salon
    response = client.post("/appointments/", json=booking(client_row, service, staff, "2020-06-01T10:00:00"))
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "PAST_DATETIME"


def test_timezone_aware_booking_is_422(client, salon):
    _, staff, service, client_row = salon
    response = client.post("/appointments/", json=booking(client_row, service, staff, "2030-06-03T10:00:00Z"))
    assert response.status_code == 422


def test_off_step_booking_is_400(client, salon):
    _, staff, service, client_row = salon
    response = client.post("/appointments/", json=booking(client_row, service, staff, "2030-06-03T10:15:00"))
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_SLOT_SELECTION"


def test_grid_booking(client, seed):
    business = seed.business()
    seed.week(business)
    staff = seed.staff(business)
    service = seed.service(business, slot_model="grid", duration=60)
    client_row = seed.client(business)

    response = client.post("/appointments/grid", json={
        "client_id": client_row.id, "service_id": service.id, "staff_id": staff.id,
        "date": "2030-06-03", "start_slot": 20, "slots_needed": 2,
    })

    assert response.status_code == 201
    assert response.json()["start_slot"] == 20


def test_cancel_appointment(client, salon):
    _, staff, service, client_row = salon
    created = client.post("/appointments/", json=booking(client_row, service, staff)).json()

    response = client.post(f"/appointments/{created['appointment_id']}/cancel", json={"reason": "ill"})

    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert response.json()["cancel_reason"] == "ill"
    assert client.post("/appointments/999/cancel").status_code == 404


def test_patch_and_delete_are_not_allowed(client):
    assert client.patch("/appointments/1", json={}).status_code == 405
    assert client.delete("/appointments/1").status_code == 405


# ── Business settings ────────────────────────────────────────────────────


def test_business_hours_upsert(client, seed, redis_mock):
    business = seed.business()

    response = client.put(f"/businesses/{business.id}/hours", json={"days": [
        {"day_of_week": 1, "start_time": "08:00", "end_time": "12:00"},
        {"day_of_week": 0, "is_open": False},
    ]})

    assert response.status_code == 200
    days = response.json()["days"]
    assert [d["day_of_week"] for d in days] == [0, 1]
    assert days[1]["start_time"] == "08:00"
    redis_mock.delete.assert_called()

    response = client.put(f"/businesses/{business.id}/hours", json={"days": [
        {"day_of_week": 1, "start_time": "10:00", "end_time": "09:00"},
    ]})
    assert response.status_code == 422


def test_hours_for_unknown_business(client):
    response = client.get("/businesses/999/hours")
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "BUSINESS_NOT_FOUND"


def test_slot_configuration_lifecycle(client, seed):
    business = seed.business()
    url = f"/businesses/{business.id}/slot-configuration"

    default = client.get(url).json()
    assert default["is_default"] is True
    assert default["slot_duration_minutes"] == 30

    saved = client.put(url, json={
        "slot_duration_minutes": 15, "slots_per_day": 96,
        "working_start_slot": 32, "working_end_slot": 72,
    }).json()
    assert saved["is_default"] is False
    assert saved["working_end_slot"] == 72

    assert client.put(url, json={"slot_duration_minutes": 25}).status_code == 422

    assert client.delete(url).json()["is_default"] is True
    assert client.get(url).json()["is_default"] is True


# ── Staff unavailability ─────────────────────────────────────────────────


def test_unavailability_crud(client, salon):
    business, staff, service, _ = salon
    url = f"/staff/{staff.id}/unavailability"

    created = client.post(url, json={
        "start": "2030-06-03T09:00:00", "end": "2030-06-03T11:00:00", "reason": "dentist",
    })
    assert created.status_code == 201
    block_id = created.json()["id"]
    assert [b["id"] for b in client.get(url).json()] == [block_id]

    slots = client.get("/slots/day", params=day_params(business, service, staff)).json()["slots"]
    assert slots[0]["reason"] == "staff-unavailable"

    assert client.patch(f"{url}/{block_id}", json={}).status_code == 405
    assert client.delete(f"{url}/{block_id}").status_code == 204
    assert client.get(url).json() == []


def test_unavailability_rejects_reversed_range(client, salon):
    staff = salon[1]
    response = client.post(f"/staff/{staff.id}/unavailability", json={
        "start": "2030-06-03T11:00:00", "end": "2030-06-03T09:00:00",
    })
    assert response.status_code == 422


def test_unavailability_rejects_timezone_aware_bounds(client, salon):
    staff = salon[1]
    response = client.post(f"/staff/{staff.id}/unavailability", json={
        "start": "2030-06-03T09:00:00+02:00", "end": "2030-06-03T11:00:00+02:00",
    })
    assert response.status_code == 422
