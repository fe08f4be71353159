"""
Availability queries: calendar view over a date range and slot view for a day.

Read-only. Both views are built from one LedgerSnapshot, so every number
in a response comes from the same committed state.

Range view (per date):
  total_available_spots = sum(available_spots) over configured slots
  is_available          = total_available_spots > 0 and date in booking window

A date counts as fully booked only when every slot is full or blocked.
"""

from datetime import date, timedelta

from sqlalchemy.orm import Session

from ...errors import Rejection, RejectionKind
from ...models.generated import Services
from .config import BookingConfig, get_booking_config
from .ledger import CapacityLedger
from .policy import check_booking_window, last_bookable_date, parse_date

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def range_availability(
    db: Session,
    start_date: str | date,
    end_date: str | date,
    today: date,
    config: BookingConfig | None = None,
    service_id: str | None = None,
) -> dict | Rejection:
    """
    Calendar availability for [start_date, end_date].

    Returns:
        Dict for AvailabilityRangeResponse, or a Rejection.
    """
    config = config or get_booking_config()

    start = parse_date(start_date)
    if isinstance(start, Rejection):
        return start
    end = parse_date(end_date)
    if isinstance(end, Rejection):
        return end

    if end < start:
        return Rejection(RejectionKind.INVALID_DATE_RANGE, "end_date must not be before start_date")
    span_days = (end - start).days + 1
    if span_days > config.max_range_days:
        return Rejection(
            RejectionKind.INVALID_DATE_RANGE,
            f"Date range cannot exceed {config.max_range_days} days",
        )

    service_duration = None
    if service_id is not None:
        service = _get_service(db, service_id)
        if not service:
            return Rejection(RejectionKind.SERVICE_NOT_FOUND, f"Service {service_id} not found")
        service_duration = service.duration

    snap = CapacityLedger(db, config).snapshot(start, end)
    max_date = last_bookable_date(today, config)

    dates = []
    current = start
    while current <= end:
        is_past = current < today
        is_beyond = current > max_date

        total_capacity = 0
        booked = 0
        available = 0
        for time_str in config.slot_times:
            total_capacity += snap.effective_capacity(current, time_str)
            booked += snap.booked_count(current, time_str)
            available += snap.available_spots(current, time_str)

        dates.append({
            "date": current,
            "day_of_week": DAY_NAMES[current.weekday()],
            "nominal_capacity": config.nominal_capacity(current),
            "override_capacity": snap.day_override(current),
            "total_capacity": total_capacity,
            "booked_count": booked,
            "total_available_spots": available,
            "is_past": is_past,
            "is_beyond_window": is_beyond,
            "is_blocked": total_capacity == 0,
            "is_available": available > 0 and not is_past and not is_beyond,
        })
        current += timedelta(days=1)

    return {
        "start_date": start,
        "end_date": end,
        "service_id": service_id,
        "service_duration": service_duration,
        "booking_window_days": config.booking_window_days,
        "dates": dates,
    }


def slot_availability(
    db: Session,
    target_date: str | date,
    today: date,
    config: BookingConfig | None = None,
) -> dict | Rejection:
    """
    Per-slot availability for one bookable date.

    Rejects INVALID_DATE_FORMAT, PAST_DATE and BEYOND_BOOKING_WINDOW like admission does.
    """
    config = config or get_booking_config()

    dt = parse_date(target_date)
    if isinstance(dt, Rejection):
        return dt
    rejection = check_booking_window(dt, today, config)
    if rejection is not None:
        return rejection

    snap = CapacityLedger(db, config).snapshot(dt, dt)

    slots = []
    for time_str in config.slot_times:
        capacity = snap.effective_capacity(dt, time_str)
        booked = snap.booked_count(dt, time_str)
        available = snap.available_spots(dt, time_str)
        if available > 0:
            status = "available"
        elif capacity == 0:
            status = "blocked"
        else:
            status = "full"
        slots.append({
            "time": time_str,
            "effective_capacity": capacity,
            "booked_count": booked,
            "available_spots": available,
            "is_available": available > 0,
            "status": status,
        })

    return {
        "date": dt,
        "day_of_week": DAY_NAMES[dt.weekday()],
        "nominal_capacity": config.nominal_capacity(dt),
        "override_capacity": snap.day_override(dt),
        "is_blocked": all(s["status"] == "blocked" for s in slots),
        "slots": slots,
    }


# ── Database helpers ─────────────────────────────────────────────────────


def _get_service(db: Session, service_id: str):
    """Get active service by ID."""
    return db.query(Services).filter(
        Services.service_id == service_id,
        Services.is_active == 1,
    ).first()
