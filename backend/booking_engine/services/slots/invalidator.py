# backend/booking_engine/services/slots/invalidator.py
"""
Cache invalidation for business configuration.

Triggers:
✓ Business hours changed
✓ Slot configuration created / updated / deleted
✓ Manual POST /slots/invalidate

Does NOT trigger:
✗ Appointment created/cancelled (never cached)
✗ Staff schedule or unavailability changed (read per resolution)
✗ Service changed (read per resolution)
"""

import logging

from redis import Redis

from .cache import BusinessConfigCache

logger = logging.getLogger(__name__)


def invalidate_business_cache(redis: Redis | None, business_id: int) -> int:
    """
    Invalidate cached configuration of a business.

    Args:
        redis: Redis client, or None when caching is disabled
        business_id: Business ID

    Returns:
        Number of deleted cache keys
    """
    deleted = BusinessConfigCache(redis).invalidate(business_id)
    logger.info(f"Config cache invalidated: business={business_id}, keys={deleted}")
    return deleted
