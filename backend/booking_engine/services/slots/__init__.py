# backend/booking_engine/services/slots/__init__.py
"""
Slots calculation module.

Resolution: business hours ∩ service rules ∩ staff schedule → open window
Generation: continuous steps, explicit windows or fixed grid
Conflicts:  appointments, unavailability blocks, lunch breaks
"""

from .config import BookingConfig, GridConfig, get_booking_config
from .cache import BusinessConfigCache
from .invalidator import invalidate_business_cache
from .resolver import Closed, OpenWindow, resolve_window
from .availability import calculate_service_availability, calculate_grid_availability

__all__ = [
    "BookingConfig",
    "GridConfig",
    "get_booking_config",
    "BusinessConfigCache",
    "invalidate_business_cache",
    "Closed",
    "OpenWindow",
    "resolve_window",
    "calculate_service_availability",
    "calculate_grid_availability",
]
