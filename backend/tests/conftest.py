import json
from datetime import date, datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import sessionmaker

from booking_engine.database import build_engine
from booking_engine.models import Base
from booking_engine.models.generated import (
    Appointments,
    BusinessHours,
    Businesses,
    BusinessSlotConfigurations,
    Clients,
    Services,
    Staff,
    StaffAvailability,
    StaffUnavailability,
)
from booking_engine.services.slots.config import BookingConfig

# 2030-06-03 is a Monday (weekday index 1)
MONDAY = date(2030, 6, 3)
SUNDAY = date(2030, 6, 2)
NOW = datetime(2030, 1, 1, 8, 0)


@pytest.fixture
def engine(tmp_path):
    # File-backed so several connections (threads) see the same database
    engine = build_engine(f"sqlite:///{tmp_path / 'booking.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def booking_config():
    return BookingConfig(slot_step_minutes=30, cache_ttl_seconds=60)


@pytest.fixture
def redis_mock():
    redis = MagicMock()
    redis.get.return_value = None
    redis.delete.return_value = 0
    return redis


class Seed:
    """Row factories with sensible defaults; every call commits."""

    def __init__(self, session):
        self.db = session

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def business(self, name="Studio"):
        return self._save(Businesses(name=name))

    def hours(self, business, day_of_week, start="09:00", end="18:00",
              lunch_start=None, lunch_end=None, is_open=True):
        return self._save(BusinessHours(
            business_id=business.id,
            day_of_week=day_of_week,
            is_open=1 if is_open else 0,
            start_time=start,
            end_time=end,
            lunch_break_start=lunch_start,
            lunch_break_end=lunch_end,
        ))

    def week(self, business, start="09:00", end="18:00", lunch_start=None, lunch_end=None):
        """Monday–Friday open, weekend closed."""
        for day in range(7):
            self.hours(business, day, start, end, lunch_start, lunch_end, is_open=1 <= day <= 5)

    def grid(self, business, **fields):
        return self._save(BusinessSlotConfigurations(business_id=business.id, **fields))

    def staff(self, business, name="Anna", schedule=None, is_active=True):
        staff = self._save(Staff(business_id=business.id, name=name, is_active=1 if is_active else 0))
        if schedule is not None:
            self._save(StaffAvailability(staff_id=staff.id, schedule=json.dumps(schedule)))
        return staff

    def service(self, business, name="Haircut", duration=60, slots=None, any_time=True,
                available_days=(), max_capacity=1, slot_model="continuous",
                start_time=None, end_time=None, price=25.0):
        if slots is not None and not isinstance(slots, str):
            slots = json.dumps(slots)
        return self._save(Services(
            business_id=business.id,
            name=name,
            duration=duration,
            price=price,
            available_days=json.dumps(list(available_days)),
            any_time_available=1 if any_time else 0,
            slot_model=slot_model,
            max_capacity=max_capacity,
            start_time=start_time,
            end_time=end_time,
            slots=slots,
        ))

    def client(self, business, name="Client", is_eligible=True, is_deleted=False):
        return self._save(Clients(
            business_id=business.id,
            name=name,
            is_eligible=1 if is_eligible else 0,
            is_deleted=1 if is_deleted else 0,
        ))

    def appointment(self, service, staff, client, scheduled_for, duration=None,
                    status="PENDING", group_key=None):
        return self._save(Appointments(
            business_id=service.business_id,
            client_id=client.id,
            service_id=service.id,
            staff_id=staff.id,
            scheduled_for=scheduled_for,
            duration=duration or service.duration,
            status=status,
            group_key=group_key,
        ))

    def unavailability(self, staff, start, end, reason="vacation"):
        return self._save(StaffUnavailability(staff_id=staff.id, start=start, end=end, reason=reason))


@pytest.fixture
def seed(db):
    return Seed(db)


@pytest.fixture
def salon(seed):
    """One business open Mon–Fri 09:00–18:00 with lunch 12:00–13:00."""
    business = seed.business()
    seed.week(business, lunch_start="12:00", lunch_end="13:00")
    staff = seed.staff(business)
    service = seed.service(business)
    client = seed.client(business)
    return business, staff, service, client
