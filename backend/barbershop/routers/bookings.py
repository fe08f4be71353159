# backend/barbershop/routers/bookings.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..api_errors import rejection_error
from ..database import get_db
from ..dependencies import get_clock, get_events, get_locker
from ..errors import Rejection
from ..schemas.bookings import (
    BookingCancel,
    BookingCreate,
    BookingRead,
    BookingReschedule,
)
from ..services.bookings import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
    locker=Depends(get_locker),
    events=Depends(get_events),
) -> BookingService:
    return BookingService(db, clock, locker, events=events)


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    result = service.admit(**data.model_dump())
    if isinstance(result, Rejection):
        raise rejection_error(result)
    return result


@router.get("/search", response_model=list[BookingRead])
def search_bookings(
    phone: str,
    date: str,
    service: BookingService = Depends(get_booking_service),
):
    result = service.search(phone, date)
    if isinstance(result, Rejection):
        raise rejection_error(result)
    return result


@router.get("/{ticket_number}", response_model=BookingRead)
def get_booking(
    ticket_number: str,
    service: BookingService = Depends(get_booking_service),
):
    return service.get_by_ticket(ticket_number)


@router.patch("/{ticket_number}/cancel", response_model=BookingRead)
def cancel_booking(
    ticket_number: str,
    data: BookingCancel,
    service: BookingService = Depends(get_booking_service),
):
    return service.cancel(ticket_number, data.reason, data.cancelled_by)


@router.patch("/{ticket_number}/complete", response_model=BookingRead)
def complete_booking(
    ticket_number: str,
    service: BookingService = Depends(get_booking_service),
):
    return service.complete(ticket_number)


@router.patch("/{ticket_number}/no-show", response_model=BookingRead)
def mark_no_show(
    ticket_number: str,
    service: BookingService = Depends(get_booking_service),
):
    return service.mark_no_show(ticket_number)


@router.post(
    "/{ticket_number}/reschedule",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
)
def reschedule_booking(
    ticket_number: str,
    data: BookingReschedule,
    service: BookingService = Depends(get_booking_service),
):
    result = service.reschedule(
        ticket_number,
        data.new_date,
        data.new_time,
        service_id=data.service_id,
        special_request=data.special_request,
    )
    if isinstance(result, Rejection):
        raise rejection_error(result)
    return result
