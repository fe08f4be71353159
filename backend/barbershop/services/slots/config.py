"""
Booking configuration for slots, capacity and wait-time calculation.
"""

from dataclasses import dataclass
from datetime import date
from functools import lru_cache

from ...config import Settings, settings


def time_str_to_minutes(time_str: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hour, minute = time_str.split(":")
    return int(hour) * 60 + int(minute)


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the scheduling core.

    Attributes:
        booking_window_days: How many days ahead a booking may be made
        slot_times: Bookable start times "HH:MM", ascending
        weekday_capacity: Nominal capacity per slot, Monday..Sunday
        default_slot_duration: Appointment length when no service is given
        default_service_minutes: Assumed service time of a walk-in
        lookahead_minutes: Appointments starting later than this are ignored by the simulator
        no_barber_wait_minutes: Estimate reported when no barber is active
        max_range_days: Longest date range accepted by the calendar query
        lock_retries / lock_wait_seconds / lock_lease_seconds: slot lock tuning
        timezone: Shop timezone ("today" and "now" are taken here)
    """
    booking_window_days: int = 90
    slot_times: tuple[str, ...] = (
        "10:00", "10:40", "11:20", "12:00", "12:40", "13:20", "14:00", "14:40",
    )
    weekday_capacity: tuple[int, ...] = (2, 2, 2, 3, 3, 3, 3)
    default_slot_duration: int = 40
    default_service_minutes: int = 30
    lookahead_minutes: int = 240
    no_barber_wait_minutes: int = 60
    max_range_days: int = 366
    lock_retries: int = 3
    lock_wait_seconds: float = 2.0
    lock_lease_seconds: int = 10
    timezone: str = "Europe/Dublin"

    def __post_init__(self):
        """Validate configuration."""
        if len(self.weekday_capacity) != 7:
            raise ValueError(f"weekday_capacity needs 7 values, got {len(self.weekday_capacity)}")
        if any(c < 0 for c in self.weekday_capacity):
            raise ValueError("weekday_capacity values must be >= 0")
        if not self.slot_times:
            raise ValueError("slot_times must not be empty")
        minutes = [time_str_to_minutes(t) for t in self.slot_times]
        if minutes != sorted(set(minutes)):
            raise ValueError("slot_times must be unique and ascending")
        if self.booking_window_days < 0:
            raise ValueError("booking_window_days must be >= 0")
        if self.lock_retries < 1:
            raise ValueError("lock_retries must be >= 1")

    def nominal_capacity(self, dt: date) -> int:
        """Configured per-slot capacity for the weekday of dt."""
        return self.weekday_capacity[dt.weekday()]

    def is_slot_time(self, time_str: str) -> bool:
        return time_str in self.slot_times

    @classmethod
    def from_settings(cls, s: Settings) -> "BookingConfig":
        return cls(
            booking_window_days=s.booking_window_days,
            slot_times=tuple(t.strip() for t in s.slot_times.split(",") if t.strip()),
            weekday_capacity=tuple(int(c) for c in s.weekday_capacity.split(",")),
            default_slot_duration=s.default_slot_duration,
            default_service_minutes=s.default_service_minutes,
            lookahead_minutes=s.lookahead_minutes,
            no_barber_wait_minutes=s.no_barber_wait_minutes,
            max_range_days=s.max_range_days,
            lock_retries=s.lock_retries,
            lock_wait_seconds=s.lock_wait_seconds,
            lock_lease_seconds=s.lock_lease_seconds,
            timezone=s.timezone,
        )


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton, built from environment)."""
    return BookingConfig.from_settings(settings)
