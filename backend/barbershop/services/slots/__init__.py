# backend/barbershop/services/slots/__init__.py
"""
Slots and capacity module.

Ledger: per-slot capacity accounting (bookings + overrides)
Policy: booking-window checks
Availability: calendar / day views built on the ledger
Locks: per-slot and queue serialization
"""

from .config import BookingConfig, get_booking_config
from .ledger import CapacityLedger, LedgerSnapshot
from .policy import check_booking_window, parse_date, validate_booking_date
from .availability import range_availability, slot_availability
from .locks import LocalLocker, RedisLocker, build_locker, booking_lock_key, slot_lock_key, QUEUE_LOCK_KEY

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "CapacityLedger",
    "LedgerSnapshot",
    "check_booking_window",
    "parse_date",
    "validate_booking_date",
    "range_availability",
    "slot_availability",
    "LocalLocker",
    "RedisLocker",
    "build_locker",
    "booking_lock_key",
    "slot_lock_key",
    "QUEUE_LOCK_KEY",
]
