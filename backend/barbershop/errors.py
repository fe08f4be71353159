"""
Error taxonomy of the scheduling core.

Two families:
- Rejection: an expected outcome of validation (bad date, full slot).
  Returned to the caller, never raised, never logged as an error.
- SchedulingError and subclasses: raised for lookups that fail, illegal
  state changes and infrastructure faults (lock contention, store outage).
"""

from dataclasses import dataclass
from enum import Enum


class RejectionKind(str, Enum):
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    PAST_DATE = "PAST_DATE"
    BEYOND_BOOKING_WINDOW = "BEYOND_BOOKING_WINDOW"
    SLOT_FULL = "SLOT_FULL"
    INVALID_TIME_SLOT = "INVALID_TIME_SLOT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"


@dataclass(frozen=True)
class Rejection:
    """Typed, machine-checkable refusal of a request."""
    kind: RejectionKind
    message: str

    @property
    def error_code(self) -> str:
        return self.kind.value


class SchedulingError(Exception):
    """Base class for raised errors; error_code is stable for callers."""

    error_code = "SCHEDULING_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class QueueEntryNotFoundError(SchedulingError):
    error_code = "QUEUE_ENTRY_NOT_FOUND"


class BookingNotFoundError(SchedulingError):
    error_code = "BOOKING_NOT_FOUND"


class BarberNotFoundError(SchedulingError):
    error_code = "BARBER_NOT_FOUND"


class InvalidStatusTransitionError(SchedulingError):
    error_code = "INVALID_STATUS_TRANSITION"


class BookingStateError(SchedulingError):
    """Booking is in a status that forbids the action (ALREADY_CANCELLED, ...)."""
    error_code = "INVALID_STATUS"


class ConcurrentModificationError(SchedulingError):
    """Lock contention outlasted the bounded retries."""
    error_code = "CONCURRENT_MODIFICATION"


class PersistenceUnavailableError(SchedulingError):
    """Underlying store unreachable or timed out."""
    error_code = "PERSISTENCE_UNAVAILABLE"
