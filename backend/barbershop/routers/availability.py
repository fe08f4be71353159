# backend/barbershop/routers/availability.py
"""
Availability API endpoints.

GET /availability          - calendar view over a date range
GET /availability/{date}   - per-slot view of one bookable date
"""

from datetime import timedelta
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api_errors import rejection_error
from ..database import get_db, persistence_guard
from ..dependencies import get_clock
from ..errors import Rejection
from ..schemas.availability import AvailabilityDayResponse, AvailabilityRangeResponse
from ..services.slots import get_booking_config, range_availability, slot_availability

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=AvailabilityRangeResponse)
def get_availability_range(
    start_date: str | None = None,
    end_date: str | None = None,
    service_id: str | None = None,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Calendar availability; defaults to today through the end of the booking window."""
    config = get_booking_config()
    today = clock.today()
    if start_date is None:
        start_date = today.isoformat()
    if end_date is None:
        end_date = (today + timedelta(days=config.booking_window_days)).isoformat()

    with persistence_guard(db):
        result = range_availability(db, start_date, end_date, today, config, service_id)
    if isinstance(result, Rejection):
        raise rejection_error(result)
    return AvailabilityRangeResponse(**result)


@router.get("/{target_date}", response_model=AvailabilityDayResponse)
def get_availability_day(
    target_date: str,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    """Slot-level availability for one date."""
    with persistence_guard(db):
        result = slot_availability(db, target_date, clock.today(), get_booking_config())
    if isinstance(result, Rejection):
        raise rejection_error(result)
    return AvailabilityDayResponse(**result)
