"""
backend/booking_engine/services/events.py

Event emitter: pushes booking events to a Redis list for the notification
consumer. Delivery is fire-and-forget; a failed push is logged and dropped,
never raised into the booking that caused it.

Events:
- booking_created: appointment committed
- booking_cancelled: appointment cancelled
"""

import json
import time
import logging

from redis import Redis

from ..config import settings
from ..redis_client import redis_client

logger = logging.getLogger(__name__)

BOOKING_CREATED = "booking_created"
BOOKING_CANCELLED = "booking_cancelled"


def emit_event(event_type: str, payload: dict, redis: Redis | None = None) -> bool:
    """
    Emit an event (instant delivery).

    Pushed to the Redis list `settings.events_queue` for the consumer loop.

    Returns:
        True if the event was queued.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    client = redis if redis is not None else redis_client
    try:
        client.rpush(settings.events_queue, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {settings.events_queue}")
        return True
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
        return False


def appointment_payload(appointment) -> dict:
    return {
        "appointment_id": appointment.id,
        "business_id": appointment.business_id,
        "client_id": appointment.client_id,
        "service_id": appointment.service_id,
        "staff_id": appointment.staff_id,
        "scheduled_for": appointment.scheduled_for,
        "duration": appointment.duration,
        "status": appointment.status,
    }
