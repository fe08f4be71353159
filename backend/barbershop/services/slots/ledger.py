"""
Time-slot capacity ledger.

Authoritative view of how many confirmed bookings sit in a
(date, time) slot and how many the slot may hold:

  effective_capacity = active override for exactly (date, time)
                       else active whole-day override for date
                       else nominal capacity of the weekday
  booked_count       = bookings with status "confirmed"
  available_spots    = max(0, effective_capacity - booked_count)

Purely derived from persisted state at call time; nothing is cached
between calls, so a committed booking is always reflected.
"""

from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models.generated import Bookings, CapacityOverrides
from .config import BookingConfig, get_booking_config

COUNTED_STATUS = "confirmed"


def _resolve_capacity(nominal: int, slot_override: int | None, day_override: int | None) -> int:
    if slot_override is not None:
        return max(0, slot_override)
    if day_override is not None:
        return max(0, day_override)
    return nominal


@dataclass
class LedgerSnapshot:
    """Batch-read ledger state for a date range (one query per table)."""
    config: BookingConfig
    booked: dict[tuple[str, str], int] = field(default_factory=dict)
    slot_overrides: dict[tuple[str, str], int] = field(default_factory=dict)
    day_overrides: dict[str, int] = field(default_factory=dict)

    def override_capacity(self, dt: date, time_str: str) -> int | None:
        key = dt.isoformat()
        if (key, time_str) in self.slot_overrides:
            return self.slot_overrides[(key, time_str)]
        return self.day_overrides.get(key)

    def day_override(self, dt: date) -> int | None:
        return self.day_overrides.get(dt.isoformat())

    def effective_capacity(self, dt: date, time_str: str) -> int:
        key = dt.isoformat()
        return _resolve_capacity(
            self.config.nominal_capacity(dt),
            self.slot_overrides.get((key, time_str)),
            self.day_overrides.get(key),
        )

    def booked_count(self, dt: date, time_str: str) -> int:
        return self.booked.get((dt.isoformat(), time_str), 0)

    def available_spots(self, dt: date, time_str: str) -> int:
        return max(0, self.effective_capacity(dt, time_str) - self.booked_count(dt, time_str))


class CapacityLedger:
    """Read-only capacity accounting over bookings and capacity overrides."""

    def __init__(self, db: Session, config: BookingConfig | None = None):
        self.db = db
        self.config = config or get_booking_config()

    def nominal_capacity(self, dt: date) -> int:
        return self.config.nominal_capacity(dt)

    def override_capacity(self, dt: date, time_str: str) -> int | None:
        """Active override for the slot (exact slot first, then whole day)."""
        rows = (
            self.db.query(CapacityOverrides)
            .filter(
                CapacityOverrides.override_date == dt.isoformat(),
                CapacityOverrides.is_active == 1,
                (CapacityOverrides.time_slot == time_str) | (CapacityOverrides.time_slot.is_(None)),
            )
            .order_by(CapacityOverrides.id.desc())
            .all()
        )
        slot_rows = [r for r in rows if r.time_slot == time_str]
        if slot_rows:
            return slot_rows[0].capacity
        if rows:
            return rows[0].capacity
        return None

    def effective_capacity(self, dt: date, time_str: str) -> int:
        override = self.override_capacity(dt, time_str)
        return _resolve_capacity(self.nominal_capacity(dt), override, None)

    def booked_count(self, dt: date, time_str: str) -> int:
        return (
            self.db.query(func.count(Bookings.id))
            .filter(
                Bookings.appointment_date == dt.isoformat(),
                Bookings.appointment_time == time_str,
                Bookings.status == COUNTED_STATUS,
            )
            .scalar()
        ) or 0

    def available_spots(self, dt: date, time_str: str) -> int:
        return max(0, self.effective_capacity(dt, time_str) - self.booked_count(dt, time_str))

    def snapshot(self, start: date, end: date) -> LedgerSnapshot:
        """Read booked counts and active overrides for [start, end] in two queries."""
        start_str, end_str = start.isoformat(), end.isoformat()
        snap = LedgerSnapshot(config=self.config)

        counts = (
            self.db.query(
                Bookings.appointment_date,
                Bookings.appointment_time,
                func.count(Bookings.id),
            )
            .filter(
                Bookings.appointment_date >= start_str,
                Bookings.appointment_date <= end_str,
                Bookings.status == COUNTED_STATUS,
            )
            .group_by(Bookings.appointment_date, Bookings.appointment_time)
            .all()
        )
        for appt_date, appt_time, count in counts:
            snap.booked[(appt_date, appt_time)] = count

        # Ascending id: a later override for the same key replaces an earlier one
        overrides = (
            self.db.query(CapacityOverrides)
            .filter(
                CapacityOverrides.override_date >= start_str,
                CapacityOverrides.override_date <= end_str,
                CapacityOverrides.is_active == 1,
            )
            .order_by(CapacityOverrides.id.asc())
            .all()
        )
        for ovr in overrides:
            if ovr.time_slot:
                snap.slot_overrides[(ovr.override_date, ovr.time_slot)] = ovr.capacity
            else:
                snap.day_overrides[ovr.override_date] = ovr.capacity

        return snap
