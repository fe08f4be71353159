"""
Booking-window policy.

A date is bookable when it parses as YYYY-MM-DD, is not before today and
is at most booking_window_days after today (both ends inclusive).
Checks run in that order; the first failure wins.
"""

import re
from datetime import date, timedelta

from ...errors import Rejection, RejectionKind
from .config import BookingConfig

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value: str | date) -> date | Rejection:
    """Parse "YYYY-MM-DD" into a date, or reject with INVALID_DATE_FORMAT."""
    if isinstance(value, date):
        return value
    value = str(value).strip()
    if not _DATE_RE.match(value):
        return Rejection(RejectionKind.INVALID_DATE_FORMAT, "Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError:
        return Rejection(RejectionKind.INVALID_DATE_FORMAT, f"Invalid date value: {value}")


def last_bookable_date(today: date, config: BookingConfig) -> date:
    return today + timedelta(days=config.booking_window_days)


def check_booking_window(target: date, today: date, config: BookingConfig) -> Rejection | None:
    """Return a rejection when target lies outside [today, today + window]."""
    if target < today:
        return Rejection(RejectionKind.PAST_DATE, "Cannot book appointments in the past")
    if target > last_bookable_date(today, config):
        return Rejection(
            RejectionKind.BEYOND_BOOKING_WINDOW,
            f"Cannot book appointments more than {config.booking_window_days} days in advance",
        )
    return None


def validate_booking_date(value: str | date, today: date, config: BookingConfig) -> date | Rejection:
    """Parse and window-check a requested date."""
    parsed = parse_date(value)
    if isinstance(parsed, Rejection):
        return parsed
    rejection = check_booking_window(parsed, today, config)
    return rejection if rejection is not None else parsed
