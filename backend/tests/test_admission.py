"""Tests for booking admission, lifecycle and concurrency."""

import threading
from datetime import date

import pytest

from barbershop.errors import (
    BarberNotFoundError,
    BookingNotFoundError,
    BookingStateError,
    Rejection,
    RejectionKind,
)
from barbershop.models import Bookings
from barbershop.services.bookings import BookingService
from barbershop.services.slots import QUEUE_LOCK_KEY, CapacityLedger, LocalLocker

from conftest import add_override, admit


class TestAdmissionScenario:
    """Capacity 2 at 2025-11-19 10:00."""

    def test_third_booking_rejected_until_cancellation(self, db, booking_service, config):
        first = admit(booking_service, customer_name="A")
        second = admit(booking_service, customer_name="B")
        assert isinstance(first, Bookings)
        assert isinstance(second, Bookings)
        assert first.status == "confirmed"

        third = admit(booking_service, customer_name="C")
        assert isinstance(third, Rejection)
        assert third.kind == RejectionKind.SLOT_FULL

        booking_service.cancel(first.ticket_number, "Changed plans")
        assert CapacityLedger(db, config).available_spots(date(2025, 11, 19), "10:00") == 1

        fourth = admit(booking_service, customer_name="D")
        assert isinstance(fourth, Bookings)

    def test_ticket_numbers_sequential_per_date(self, booking_service):
        first = admit(booking_service)
        second = admit(booking_service, appointment_time="10:40")
        other_day = admit(booking_service, appointment_date="2025-11-20")

        assert first.ticket_number == "TKT-20251119-001"
        assert second.ticket_number == "TKT-20251119-002"
        assert other_day.ticket_number == "TKT-20251120-001"

    def test_default_duration(self, booking_service):
        booking = admit(booking_service)
        assert booking.slot_duration == 40

    def test_service_duration_used(self, db, booking_service, haircut):
        haircut.duration = 60
        db.commit()
        booking = admit(booking_service, service_id="haircut")
        assert booking.slot_duration == 60
        assert booking.service_id == "haircut"


class TestAdmissionRejections:

    def test_past_date(self, booking_service):
        result = admit(booking_service, appointment_date="2025-11-18")
        assert result.kind == RejectionKind.PAST_DATE

    def test_beyond_window(self, booking_service):
        assert isinstance(admit(booking_service, appointment_date="2026-02-17"), Bookings)
        result = admit(booking_service, appointment_date="2026-02-18")
        assert result.kind == RejectionKind.BEYOND_BOOKING_WINDOW

    def test_bad_date_format(self, booking_service):
        result = admit(booking_service, appointment_date="19/11/2025")
        assert result.kind == RejectionKind.INVALID_DATE_FORMAT

    def test_unknown_time_slot(self, booking_service):
        result = admit(booking_service, appointment_time="10:15")
        assert result.kind == RejectionKind.INVALID_TIME_SLOT

    def test_date_checked_before_time(self, booking_service):
        result = admit(booking_service, appointment_date="2025-11-18", appointment_time="10:15")
        assert result.kind == RejectionKind.PAST_DATE

    def test_blocked_slot(self, db, booking_service):
        add_override(db, "2025-11-19", 0, time_slot="10:00")
        result = admit(booking_service)
        assert result.kind == RejectionKind.SLOT_FULL

    def test_unknown_service(self, booking_service):
        result = admit(booking_service, service_id="perm")
        assert result.kind == RejectionKind.SERVICE_NOT_FOUND

    def test_unknown_barber(self, booking_service):
        with pytest.raises(BarberNotFoundError):
            admit(booking_service, barber_id="nobody")

    def test_rejection_writes_nothing(self, db, booking_service):
        admit(booking_service, appointment_date="2025-11-18")
        admit(booking_service, appointment_time="09:00")
        assert db.query(Bookings).count() == 0


class TestConcurrentAdmission:

    def test_no_overbooking(self, session_factory, clock, locker, config):
        results = []
        results_lock = threading.Lock()
        start = threading.Barrier(8)

        def worker(i):
            session = session_factory()
            try:
                service = BookingService(session, clock, locker, config)
                start.wait()
                result = admit(service, customer_name=f"Customer {i}")
                with results_lock:
                    results.append(result)
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        admitted = [r for r in results if isinstance(r, Bookings)]
        rejected = [r for r in results if isinstance(r, Rejection)]
        assert len(admitted) == 2
        assert len(rejected) == 6
        assert all(r.kind == RejectionKind.SLOT_FULL for r in rejected)

        session = session_factory()
        try:
            assert CapacityLedger(session, config).booked_count(date(2025, 11, 19), "10:00") == 2
        finally:
            session.close()


class TestLifecycle:

    def test_cancel_records_reason(self, booking_service):
        booking = admit(booking_service)
        cancelled = booking_service.cancel(booking.ticket_number, "Sick", cancelled_by="admin")
        assert cancelled.status == "cancelled"
        assert cancelled.cancellation_reason == "Sick"
        assert cancelled.cancelled_by == "admin"
        assert cancelled.cancelled_at is not None

    def test_cancel_twice(self, booking_service):
        booking = admit(booking_service)
        booking_service.cancel(booking.ticket_number, "Sick")
        with pytest.raises(BookingStateError) as exc:
            booking_service.cancel(booking.ticket_number, "Sick")
        assert exc.value.error_code == "ALREADY_CANCELLED"

    def test_cannot_cancel_completed(self, booking_service):
        booking = admit(booking_service)
        booking_service.complete(booking.ticket_number)
        with pytest.raises(BookingStateError) as exc:
            booking_service.cancel(booking.ticket_number, "Too late")
        assert exc.value.error_code == "CANNOT_CANCEL_COMPLETED"

    def test_no_show_twice(self, booking_service):
        booking = admit(booking_service)
        marked = booking_service.mark_no_show(booking.ticket_number)
        assert marked.status == "no_show"
        with pytest.raises(BookingStateError) as exc:
            booking_service.mark_no_show(booking.ticket_number)
        assert exc.value.error_code == "ALREADY_NO_SHOW"

    def test_lookup_ignores_case(self, booking_service):
        booking = admit(booking_service)
        found = booking_service.get_by_ticket(booking.ticket_number.lower())
        assert found.booking_id == booking.booking_id

    def test_lookup_unknown(self, booking_service):
        with pytest.raises(BookingNotFoundError):
            booking_service.get_by_ticket("TKT-20251119-999")

    def test_search_by_phone_and_date(self, booking_service):
        admit(booking_service, appointment_time="10:40", customer_phone="+353870000001")
        admit(booking_service, appointment_time="10:00", customer_phone="+353870000001")
        admit(booking_service, appointment_time="10:00", customer_phone="+353870000002")

        found = booking_service.search("+353870000001", "2025-11-19")
        assert [b.appointment_time for b in found] == ["10:00", "10:40"]

    def test_search_bad_date(self, booking_service):
        result = booking_service.search("+353870000001", "19.11.2025")
        assert result.kind == RejectionKind.INVALID_DATE_FORMAT


class TestReschedule:

    def test_moves_booking(self, booking_service):
        original = admit(booking_service)
        moved = booking_service.reschedule(original.ticket_number, "2025-11-20", "11:20")

        assert isinstance(moved, Bookings)
        assert moved.appointment_date == "2025-11-20"
        assert moved.appointment_time == "11:20"
        assert moved.original_booking_id == original.booking_id
        assert moved.customer_email == original.customer_email

        old = booking_service.get_by_ticket(original.ticket_number)
        assert old.status == "cancelled"
        assert old.cancellation_reason == f"Rescheduled to {moved.ticket_number}"

    def test_full_target_keeps_original(self, booking_service):
        original = admit(booking_service)
        admit(booking_service, appointment_time="11:20")
        admit(booking_service, appointment_time="11:20")

        result = booking_service.reschedule(original.ticket_number, "2025-11-19", "11:20")
        assert isinstance(result, Rejection)
        assert result.kind == RejectionKind.SLOT_FULL
        assert booking_service.get_by_ticket(original.ticket_number).status == "confirmed"

    def test_same_slot_when_full(self, booking_service):
        original = admit(booking_service)
        admit(booking_service)

        moved = booking_service.reschedule(original.ticket_number, "2025-11-19", "10:00")
        assert isinstance(moved, Bookings)

    def test_cancelled_booking_cannot_move(self, booking_service):
        original = admit(booking_service)
        booking_service.cancel(original.ticket_number, "Sick")
        with pytest.raises(BookingStateError):
            booking_service.reschedule(original.ticket_number, "2025-11-20", "10:00")


class TestCloseErrors:

    def test_cannot_complete_cancelled(self, booking_service):
        booking = admit(booking_service)
        booking_service.cancel(booking.ticket_number, "Sick")
        with pytest.raises(BookingStateError) as exc:
            booking_service.complete(booking.ticket_number)
        assert exc.value.error_code == "CANNOT_COMPLETE_CANCELLED"

    def test_cannot_cancel_no_show(self, booking_service):
        booking = admit(booking_service)
        booking_service.mark_no_show(booking.ticket_number)
        with pytest.raises(BookingStateError) as exc:
            booking_service.cancel(booking.ticket_number, "Sick")
        assert exc.value.error_code == "INVALID_STATUS"


class TestConcurrentReschedule:

    def test_one_ticket_moves_once(self, monkeypatch, session_factory, booking_service, clock, locker, config):
        original = admit(booking_service)

        # Both requests finish their unlocked reads before either one writes
        gate = threading.Barrier(2, timeout=5)
        resolve_duration = BookingService._resolve_duration

        def resolve_then_wait(self, duration, service_id):
            result = resolve_duration(self, duration, service_id)
            gate.wait()
            return result

        monkeypatch.setattr(BookingService, "_resolve_duration", resolve_then_wait)

        moved = []
        refused = []
        results_lock = threading.Lock()

        def worker(new_time):
            session = session_factory()
            try:
                service = BookingService(session, clock, locker, config)
                try:
                    result = service.reschedule(original.ticket_number, "2025-11-20", new_time)
                    with results_lock:
                        moved.append(result)
                except BookingStateError as e:
                    with results_lock:
                        refused.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(t,)) for t in ("10:00", "11:20")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(moved) == 1
        assert isinstance(moved[0], Bookings)
        assert [e.error_code for e in refused] == ["INVALID_STATUS"]

        session = session_factory()
        try:
            confirmed = session.query(Bookings).filter(Bookings.status == "confirmed").all()
            assert [b.ticket_number for b in confirmed] == [moved[0].ticket_number]
        finally:
            session.close()

    def test_stale_copy_is_reread(self, session_factory, booking_service, clock, locker, config):
        original = admit(booking_service)
        stale_session = session_factory()
        try:
            stale = BookingService(stale_session, clock, locker, config)
            assert stale.get_by_ticket(original.ticket_number).status == "confirmed"

            booking_service.cancel(original.ticket_number, "Sick")

            with pytest.raises(BookingStateError):
                stale.reschedule(original.ticket_number, "2025-11-20", "10:00")
            with pytest.raises(BookingStateError) as exc:
                stale.complete(original.ticket_number)
            assert exc.value.error_code == "CANNOT_COMPLETE_CANCELLED"
        finally:
            stale_session.close()


class TestQueueBusyAfterCommit:
    """A committed change is reported as done even if the queue refresh cannot run."""

    def test_admit_returns_booking(self, db, session_factory, clock, config):
        locker = LocalLocker(retries=1, wait_seconds=0.1)
        service = BookingService(db, clock, locker, config)

        with locker.hold(QUEUE_LOCK_KEY):
            result = admit(service)

        assert isinstance(result, Bookings)
        session = session_factory()
        try:
            assert session.query(Bookings).filter(Bookings.status == "confirmed").count() == 1
        finally:
            session.close()

    def test_cancel_returns_booking(self, db, clock, config):
        locker = LocalLocker(retries=1, wait_seconds=0.1)
        service = BookingService(db, clock, locker, config)
        booking = admit(service)

        with locker.hold(QUEUE_LOCK_KEY):
            cancelled = service.cancel(booking.ticket_number, "Sick")

        assert cancelled.status == "cancelled"
