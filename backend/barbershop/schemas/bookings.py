# backend/barbershop/schemas/bookings.py

from typing import Optional
from pydantic import BaseModel, Field


class BookingCreate(BaseModel):
    # Kept as strings: malformed dates are reported as INVALID_DATE_FORMAT,
    # not as a validation error of the request body.
    appointment_date: str
    appointment_time: str

    customer_name: str = Field(min_length=1)
    customer_email: str = Field(min_length=3)
    customer_phone: str = Field(min_length=5)

    service_id: Optional[str] = None
    barber_id: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)
    special_request: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingCancel(BaseModel):
    reason: str = Field(min_length=1)
    cancelled_by: str = "customer"


class BookingReschedule(BaseModel):
    new_date: str
    new_time: str

    service_id: Optional[str] = None
    special_request: Optional[str] = None


class BookingRead(BaseModel):
    booking_id: str
    ticket_number: str
    status: str

    appointment_date: str
    appointment_time: str
    slot_duration: int

    customer_name: str
    customer_email: str
    customer_phone: str

    service_id: Optional[str] = None
    barber_id: Optional[str] = None
    special_request: Optional[str] = None

    created_at: str
    updated_at: str
    confirmed_at: Optional[str] = None
    completed_at: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    original_booking_id: Optional[str] = None

    model_config = {"from_attributes": True}
