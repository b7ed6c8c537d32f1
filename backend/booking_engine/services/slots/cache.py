# backend/booking_engine/services/slots/cache.py
"""
Redis cache of per-business configuration.

Key format: booking:config:{business_id}:{kind}
  kind = "hours" → JSON {"0": DayHours, ...} (weekday → hours)
  kind = "grid"  → JSON GridConfig.to_dict()

Read-through: a miss loads from the database and stores with a TTL.
Without a Redis client every read goes straight to the database.
Appointments are never cached; they are read fresh on every resolution.
"""

import json
import logging

from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from .config import BookingConfig, GridConfig, get_booking_config
from .loader import load_business_hours, load_grid_config
from .rules import DayHours

logger = logging.getLogger(__name__)

CONFIG_KINDS = ("hours", "grid")


class BusinessConfigCache:
    """Read-through cache wrapper for business hours and grid layout."""

    KEY_PREFIX = "booking:config"

    def __init__(self, redis: Redis | None = None, config: BookingConfig | None = None):
        self.redis = redis
        self.config = config or get_booking_config()

    def _key(self, business_id: int, kind: str) -> str:
        return f"{self.KEY_PREFIX}:{business_id}:{kind}"

    # ── Read ─────────────────────────────────────────────────────────────

    def business_hours(self, db: Session, business_id: int) -> dict[int, DayHours]:
        cached = self._get(business_id, "hours")
        if cached is not None:
            return {int(day): DayHours.from_dict(value) for day, value in cached.items()}

        hours = load_business_hours(db, business_id)
        self._set(business_id, "hours", {str(day): h.to_dict() for day, h in hours.items()})
        return hours

    def grid_config(self, db: Session, business_id: int) -> GridConfig:
        cached = self._get(business_id, "grid")
        if cached is not None:
            return GridConfig(**cached)

        grid = load_grid_config(db, business_id)
        self._set(business_id, "grid", grid.to_dict())
        return grid

    # ── Delete ───────────────────────────────────────────────────────────

    def invalidate(self, business_id: int) -> int:
        """
        Drop every cached entry of a business.

        Returns:
            Number of deleted keys.
        """
        if self.redis is None:
            return 0
        keys = [self._key(business_id, kind) for kind in CONFIG_KINDS]
        try:
            return self.redis.delete(*keys)
        except RedisError as e:
            logger.error(f"Config cache invalidation failed for business {business_id}: {e}")
            return 0

    # ── Internals ────────────────────────────────────────────────────────

    def _get(self, business_id: int, kind: str):
        if self.redis is None:
            return None
        try:
            raw = self.redis.get(self._key(business_id, kind))
        except RedisError as e:
            logger.warning(f"Config cache read failed for business {business_id}: {e}")
            return None
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        return json.loads(raw)

    def _set(self, business_id: int, kind: str, value: dict) -> None:
        if self.redis is None:
            return
        try:
            self.redis.set(
                self._key(business_id, kind),
                json.dumps(value),
                ex=self.config.cache_ttl_seconds,
            )
        except RedisError as e:
            logger.warning(f"Config cache write failed for business {business_id}: {e}")
