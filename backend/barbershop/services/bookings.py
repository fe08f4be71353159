"""
Booking admission and lifecycle.

admit() validation order (first failure wins):
  1. INVALID_DATE_FORMAT
  2. PAST_DATE
  3. BEYOND_BOOKING_WINDOW
  4. INVALID_TIME_SLOT
  5. SLOT_FULL  (checked under the slot lock, together with the insert)

Capacity check and insert are one critical section per (date, time):
two requests racing for the last spot yield one booking and one SLOT_FULL.

Status changes of one booking (cancel, complete, no-show, reschedule) are
serialized by a per-ticket lock; reschedule takes it before the slot lock.

After every committed change the walk-in queue is recomputed before the
call returns. A failed recompute is logged and never reported for a change
that was already committed.
"""

import logging
import uuid
from datetime import date

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import persistence_guard
from ..errors import (
    BarberNotFoundError,
    BookingNotFoundError,
    BookingStateError,
    ConcurrentModificationError,
    Rejection,
    RejectionKind,
    SchedulingError,
)
from ..models.generated import Barbers, Bookings, Services
from .events import EventEmitter
from .queue import QueueManager
from .slots.config import BookingConfig, get_booking_config
from .slots.ledger import CapacityLedger
from .slots.locks import SlotLocker, booking_lock_key, slot_lock_key
from .slots.policy import parse_date, validate_booking_date

logger = logging.getLogger(__name__)

CONFIRMED = "confirmed"
CANCELLED = "cancelled"
COMPLETED = "completed"
NO_SHOW = "no_show"

# error-code verbs: CANNOT_COMPLETE_CANCELLED, CANNOT_MARK_NO_SHOW_COMPLETED, ...
_CLOSE_VERBS = {COMPLETED: "COMPLETE", NO_SHOW: "MARK_NO_SHOW"}


class BookingService:
    """Admission controller plus cancel / complete / no-show / reschedule."""

    def __init__(
        self,
        db: Session,
        clock,
        locker: SlotLocker,
        config: BookingConfig | None = None,
        events: EventEmitter | None = None,
    ):
        self.db = db
        self.clock = clock
        self.locker = locker
        self.config = config or get_booking_config()
        self.events = events or EventEmitter(None)
        self.ledger = CapacityLedger(db, self.config)

    # ── Admission ────────────────────────────────────────────────────────

    def admit(
        self,
        appointment_date: str | date,
        appointment_time: str,
        customer_name: str,
        customer_email: str,
        customer_phone: str,
        duration: int | None = None,
        barber_id: str | None = None,
        service_id: str | None = None,
        special_request: str | None = None,
    ) -> Bookings | Rejection:
        """
        Admit a booking into a slot, or return the reason it was refused.

        Returns:
            The persisted confirmed booking, or a Rejection.
        Raises:
            BarberNotFoundError, ConcurrentModificationError, PersistenceUnavailableError
        """
        checked = self._check_request(appointment_date, appointment_time)
        if isinstance(checked, Rejection):
            return self._rejected(checked, appointment_date, appointment_time)
        target = checked

        with persistence_guard(self.db):
            if barber_id is not None:
                self._require_active_barber(barber_id)
            slot_duration = self._resolve_duration(duration, service_id)
            if isinstance(slot_duration, Rejection):
                return self._rejected(slot_duration, appointment_date, appointment_time)

            with self.locker.hold(slot_lock_key(target, appointment_time)):
                if self.ledger.available_spots(target, appointment_time) <= 0:
                    return self._rejected(
                        Rejection(RejectionKind.SLOT_FULL, "Time slot is fully booked"),
                        appointment_date,
                        appointment_time,
                    )

                def write():
                    booking = self._build_booking(
                        target,
                        appointment_time,
                        slot_duration,
                        customer_name=customer_name,
                        customer_email=customer_email,
                        customer_phone=customer_phone,
                        barber_id=barber_id,
                        service_id=service_id,
                        special_request=special_request,
                    )
                    self.db.add(booking)
                    return booking

                booking = self._commit_with_ticket_retry(write)

        logger.info(
            f"Booking admitted: {booking.ticket_number} {booking.appointment_date} "
            f"{booking.appointment_time} barber={barber_id or 'any'}"
        )
        self._after_change(booking)
        self.events.emit("booking_created", {
            "booking_id": booking.booking_id,
            "ticket_number": booking.ticket_number,
            "appointment_date": booking.appointment_date,
            "appointment_time": booking.appointment_time,
        })
        return booking

    def reschedule(
        self,
        ticket_number: str,
        new_date: str | date,
        new_time: str,
        service_id: str | None = None,
        special_request: str | None = None,
    ) -> Bookings | Rejection:
        """
        Move a confirmed booking to a new slot.

        The new booking is admitted through the same checks as admit(); the
        original is cancelled in the same transaction.
        """
        checked = self._check_request(new_date, new_time)
        if isinstance(checked, Rejection):
            return self._rejected(checked, new_date, new_time)
        target = checked

        with persistence_guard(self.db):
            original = self._get_for_update(ticket_number)
            effective_service = service_id or original.service_id
            slot_duration = self._resolve_duration(
                None if service_id else original.slot_duration, effective_service
            )
            if isinstance(slot_duration, Rejection):
                return self._rejected(slot_duration, new_date, new_time)

            # Lock order: ticket, then slot. admit() only takes slot locks.
            with self.locker.hold(booking_lock_key(ticket_number)):
                original = self._get_for_update(ticket_number)
                if original.status != CONFIRMED:
                    raise BookingStateError("Can only reschedule confirmed bookings", "INVALID_STATUS")

                with self.locker.hold(slot_lock_key(target, new_time)):
                    available = self.ledger.available_spots(target, new_time)
                    same_slot = (
                        original.appointment_date == target.isoformat()
                        and original.appointment_time == new_time
                    )
                    if same_slot:
                        available += 1  # the original frees its own spot
                    if available <= 0:
                        return self._rejected(
                            Rejection(RejectionKind.SLOT_FULL, "New time slot is fully booked"),
                            new_date,
                            new_time,
                        )

                    original_id = original.booking_id

                    def write():
                        source = self._get_for_update(ticket_number)
                        booking = self._build_booking(
                            target,
                            new_time,
                            slot_duration,
                            customer_name=source.customer_name,
                            customer_email=source.customer_email,
                            customer_phone=source.customer_phone,
                            barber_id=source.barber_id,
                            service_id=effective_service,
                            special_request=special_request or source.special_request,
                        )
                        booking.original_booking_id = original_id
                        self.db.add(booking)

                        now = self.clock.now().isoformat()
                        source.status = CANCELLED
                        source.cancelled_at = now
                        source.cancelled_by = "customer"
                        source.cancellation_reason = f"Rescheduled to {booking.ticket_number}"
                        source.updated_at = now
                        return booking

                    booking = self._commit_with_ticket_retry(write)

        logger.info(f"Booking {ticket_number} rescheduled to {booking.ticket_number}")
        self._after_change(booking)
        self.events.emit("booking_rescheduled", {
            "original_ticket_number": ticket_number,
            "ticket_number": booking.ticket_number,
            "appointment_date": booking.appointment_date,
            "appointment_time": booking.appointment_time,
        })
        return booking

    # ── Lifecycle ────────────────────────────────────────────────────────

    def cancel(
        self,
        ticket_number: str,
        reason: str,
        cancelled_by: str = "customer",
    ) -> Bookings:
        """Cancel a confirmed booking; its spot becomes available again."""
        with persistence_guard(self.db):
            with self.locker.hold(booking_lock_key(ticket_number)):
                booking = self._get_for_update(ticket_number)
                if booking.status == CANCELLED:
                    raise BookingStateError("Booking already cancelled", "ALREADY_CANCELLED")
                if booking.status == COMPLETED:
                    raise BookingStateError("Cannot cancel completed booking", "CANNOT_CANCEL_COMPLETED")
                if booking.status != CONFIRMED:
                    raise BookingStateError(f"Cannot cancel booking in status {booking.status}", "INVALID_STATUS")

                now = self.clock.now().isoformat()
                booking.status = CANCELLED
                booking.cancelled_at = now
                booking.cancelled_by = cancelled_by
                booking.cancellation_reason = reason
                booking.updated_at = now
                self.db.commit()

        logger.info(f"Booking cancelled: {booking.ticket_number} by {cancelled_by}")
        self._after_change(booking)
        self.events.emit("booking_cancelled", {
            "booking_id": booking.booking_id,
            "ticket_number": booking.ticket_number,
            "cancelled_by": cancelled_by,
        })
        return booking

    def complete(self, ticket_number: str) -> Bookings:
        return self._close(ticket_number, COMPLETED)

    def mark_no_show(self, ticket_number: str) -> Bookings:
        return self._close(ticket_number, NO_SHOW)

    def get_by_ticket(self, ticket_number: str) -> Bookings:
        with persistence_guard(self.db):
            return self._get_for_update(ticket_number)

    def search(self, phone: str, appointment_date: str | date) -> list[Bookings] | Rejection:
        """Bookings of a phone number on one date, ordered by time."""
        parsed = parse_date(appointment_date)
        if isinstance(parsed, Rejection):
            return parsed
        with persistence_guard(self.db):
            return (
                self.db.query(Bookings)
                .filter(
                    Bookings.customer_phone == phone.strip(),
                    Bookings.appointment_date == parsed.isoformat(),
                )
                .order_by(Bookings.appointment_time.asc())
                .all()
            )

    # ── Internals ────────────────────────────────────────────────────────

    def _check_request(self, appointment_date: str | date, appointment_time: str) -> date | Rejection:
        """Validation steps 1-4 (everything except capacity)."""
        checked = validate_booking_date(appointment_date, self.clock.today(), self.config)
        if isinstance(checked, Rejection):
            return checked
        if not self.config.is_slot_time(appointment_time):
            return Rejection(
                RejectionKind.INVALID_TIME_SLOT,
                f"{appointment_time} is not a bookable time slot",
            )
        return checked

    def _rejected(self, rejection: Rejection, appointment_date, appointment_time) -> Rejection:
        logger.info(
            f"Booking rejected: {rejection.kind.value} for {appointment_date} {appointment_time}"
        )
        return rejection

    def _close(self, ticket_number: str, target_status: str) -> Bookings:
        with persistence_guard(self.db):
            with self.locker.hold(booking_lock_key(ticket_number)):
                booking = self._get_for_update(ticket_number)
                if booking.status == target_status:
                    raise BookingStateError(
                        f"Booking already {target_status}", f"ALREADY_{target_status.upper()}"
                    )
                if booking.status != CONFIRMED:
                    raise BookingStateError(
                        f"Cannot mark {booking.status} booking as {target_status}",
                        f"CANNOT_{_CLOSE_VERBS[target_status]}_{booking.status.upper()}",
                    )

                now = self.clock.now().isoformat()
                booking.status = target_status
                booking.updated_at = now
                if target_status == COMPLETED:
                    booking.completed_at = now
                self.db.commit()

        logger.info(f"Booking {booking.ticket_number} marked {target_status}")
        self._after_change(booking)
        return booking

    def _get_for_update(self, ticket_number: str) -> Bookings:
        """Load a booking by ticket, overwriting any stale copy in the session."""
        booking = (
            self.db.query(Bookings)
            .populate_existing()
            .filter(func.upper(Bookings.ticket_number) == ticket_number.strip().upper())
            .first()
        )
        if not booking:
            raise BookingNotFoundError(f"Booking {ticket_number} not found")
        return booking

    def _resolve_duration(self, duration: int | None, service_id: str | None) -> int | Rejection:
        if duration is not None:
            return duration
        if service_id is not None:
            service = (
                self.db.query(Services)
                .filter(Services.service_id == service_id, Services.is_active == 1)
                .first()
            )
            if not service:
                return Rejection(RejectionKind.SERVICE_NOT_FOUND, f"Service {service_id} not found")
            return service.duration
        return self.config.default_slot_duration

    def _require_active_barber(self, barber_id: str) -> None:
        barber = self.db.get(Barbers, barber_id)
        if not barber or not barber.is_active:
            raise BarberNotFoundError(f"Barber {barber_id} not found or inactive")

    def _build_booking(self, target: date, appointment_time: str, slot_duration: int, **fields) -> Bookings:
        now = self.clock.now().isoformat()
        return Bookings(
            booking_id=str(uuid.uuid4()),
            ticket_number=self._next_ticket_number(target),
            status=CONFIRMED,
            appointment_date=target.isoformat(),
            appointment_time=appointment_time,
            slot_duration=slot_duration,
            created_at=now,
            updated_at=now,
            confirmed_at=now,
            **fields,
        )

    def _next_ticket_number(self, target: date) -> str:
        """TKT-YYYYMMDD-NNN, sequence per appointment date."""
        prefix = f"TKT-{target.strftime('%Y%m%d')}-"
        rows = (
            self.db.query(Bookings.ticket_number)
            .filter(Bookings.ticket_number.like(f"{prefix}%"))
            .all()
        )
        max_seq = 0
        for (ticket,) in rows:
            suffix = ticket[len(prefix):]
            if suffix.isdigit():
                max_seq = max(max_seq, int(suffix))
        return f"{prefix}{max_seq + 1:03d}"

    def _commit_with_ticket_retry(self, write):
        """
        Run write() and commit. Ticket numbers are per date while locks are
        per slot, so two slots of one day can race for the same number; the
        unique constraint catches it and the write is replayed.
        """
        for attempt in range(1, self.config.lock_retries + 1):
            booking = write()
            try:
                self.db.commit()
                return booking
            except IntegrityError:
                self.db.rollback()
                logger.warning(
                    f"Ticket number collision on {booking.ticket_number} "
                    f"(attempt {attempt}/{self.config.lock_retries})"
                )
        raise ConcurrentModificationError("Could not allocate a ticket number")

    def _after_change(self, booking: Bookings) -> None:
        """
        Refresh queue estimates after a committed change. The change stands
        even if this fails; estimates are re-derived on every read.

        The booking is detached first so a rollback inside the recompute
        cannot expire the object handed back to the caller.
        """
        self.db.expunge(booking)
        try:
            QueueManager(self.db, self.clock, self.locker, self.config, self.events).recompute_positions()
        except SchedulingError as e:
            logger.warning(f"Queue recompute skipped after committed change: {e.error_code} {e.message}")
