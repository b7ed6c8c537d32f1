import json
from unittest.mock import MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from booking_engine.services.slots.cache import BusinessConfigCache
from booking_engine.services.slots.config import GridConfig
from booking_engine.services.slots.invalidator import invalidate_business_cache
from booking_engine.services.slots.rules import DayHours


def test_miss_loads_from_database_and_stores_with_ttl(db, salon, redis_mock, booking_config):
    business = salon[0]
    cache = BusinessConfigCache(redis_mock, booking_config)

    hours = cache.business_hours(db, business.id)

    assert hours[1] == DayHours(True, "09:00", "18:00", "12:00", "13:00")
    assert hours[0].is_open is False
    key, body = redis_mock.set.call_args.args
    assert key == f"booking:config:{business.id}:hours"
    assert json.loads(body)["1"]["lunch_start"] == "12:00"
    assert redis_mock.set.call_args.kwargs == {"ex": 60}


def test_hit_does_not_touch_database(booking_config):
    redis = MagicMock()
    redis.get.return_value = json.dumps({"3": DayHours(True, "10:00", "14:00").to_dict()})
    db = MagicMock()

    hours = BusinessConfigCache(redis, booking_config).business_hours(db, 7)

    assert hours == {3: DayHours(True, "10:00", "14:00")}
    db.query.assert_not_called()
    redis.set.assert_not_called()


def test_grid_config_defaults_and_round_trip(db, seed, redis_mock, booking_config):
    business = seed.business()
    cache = BusinessConfigCache(redis_mock, booking_config)

    assert cache.grid_config(db, business.id) == GridConfig()
    stored = redis_mock.set.call_args.args[1]

    redis_mock.get.return_value = stored
    assert cache.grid_config(db, business.id) == GridConfig()


def test_redis_failure_falls_back_to_database(db, salon, booking_config, caplog):
    business = salon[0]
    redis = MagicMock()
    redis.get.side_effect = RedisConnectionError("down")
    redis.set.side_effect = RedisConnectionError("down")

    hours = BusinessConfigCache(redis, booking_config).business_hours(db, business.id)

    assert hours[1].start == "09:00"
    assert any("Config cache read failed" in r.getMessage() for r in caplog.records)


def test_without_redis_every_read_hits_database(db, salon, booking_config):
    business = salon[0]
    cache = BusinessConfigCache(None, booking_config)
    assert cache.business_hours(db, business.id)[5].end == "18:00"
    assert cache.invalidate(business.id) == 0


def test_invalidate_deletes_every_kind(redis_mock):
    redis_mock.delete.return_value = 2
    assert invalidate_business_cache(redis_mock, 4) == 2
    redis_mock.delete.assert_called_once_with("booking:config:4:hours", "booking:config:4:grid")


def test_invalidate_swallows_redis_errors(caplog):
    redis = MagicMock()
    redis.delete.side_effect = RedisConnectionError("down")
    assert invalidate_business_cache(redis, 4) == 0
    assert any("invalidation failed" in r.getMessage() for r in caplog.records)
