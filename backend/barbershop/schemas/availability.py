# backend/barbershop/schemas/availability.py
"""
Availability API schemas.

Range view: GET /availability
Slot view:  GET /availability/{date}
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel


class AvailabilityDate(BaseModel):
    """One day in the calendar view."""
    date: date
    day_of_week: str
    nominal_capacity: int
    override_capacity: Optional[int] = None
    total_capacity: int
    booked_count: int
    total_available_spots: int
    is_past: bool
    is_beyond_window: bool
    is_blocked: bool
    is_available: bool


class AvailabilityRangeResponse(BaseModel):
    start_date: date
    end_date: date
    service_id: Optional[str] = None
    service_duration: Optional[int] = None
    booking_window_days: int
    dates: list[AvailabilityDate]


class SlotAvailability(BaseModel):
    time: str  # HH:MM
    effective_capacity: int
    booked_count: int
    available_spots: int
    is_available: bool
    status: str  # available / full / blocked


class AvailabilityDayResponse(BaseModel):
    date: date
    day_of_week: str
    nominal_capacity: int
    override_capacity: Optional[int] = None
    is_blocked: bool
    slots: list[SlotAvailability]
