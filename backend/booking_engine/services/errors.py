"""
Error types raised by the slots and enrollment services.

Constraint outcomes (closed day, empty window) are NOT errors: resolution
returns a Closed result for them. Everything here is a real rejection.
"""

from enum import Enum


class ErrorCode(str, Enum):
    CLIENT_NOT_FOUND = "CLIENT_NOT_FOUND"
    CLIENT_NOT_ELIGIBLE = "CLIENT_NOT_ELIGIBLE"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    SLOT_NO_LONGER_AVAILABLE = "SLOT_NO_LONGER_AVAILABLE"
    STAFF_NOT_FOUND = "STAFF_NOT_FOUND"
    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    BUSINESS_NOT_FOUND = "BUSINESS_NOT_FOUND"
    APPOINTMENT_NOT_FOUND = "APPOINTMENT_NOT_FOUND"
    PAST_DATETIME = "PAST_DATETIME"
    INVALID_SLOT_SELECTION = "INVALID_SLOT_SELECTION"


HTTP_STATUS = {
    ErrorCode.CLIENT_NOT_FOUND: 404,
    ErrorCode.STAFF_NOT_FOUND: 404,
    ErrorCode.SERVICE_NOT_FOUND: 404,
    ErrorCode.BUSINESS_NOT_FOUND: 404,
    ErrorCode.APPOINTMENT_NOT_FOUND: 404,
    ErrorCode.CLIENT_NOT_ELIGIBLE: 403,
    ErrorCode.ALREADY_ENROLLED: 409,
    ErrorCode.CAPACITY_EXCEEDED: 409,
    ErrorCode.SLOT_NO_LONGER_AVAILABLE: 409,
    ErrorCode.PAST_DATETIME: 400,
    ErrorCode.INVALID_SLOT_SELECTION: 400,
}


class EnrollmentError(Exception):
    """Terminal rejection of a booking attempt."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or code.value.replace("_", " ").capitalize()
        super().__init__(f"{code.value}: {self.message}")

    @property
    def http_status(self) -> int:
        return HTTP_STATUS.get(self.code, 400)

    def to_detail(self) -> dict:
        return {"code": self.code.value, "message": self.message}


class InvalidTimeFormat(ValueError):
    """A wall-clock string is not a valid "HH:MM"."""


class InvalidSlotConfiguration(ValueError):
    """A grid configuration is not a valid day layout."""
