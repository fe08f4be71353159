"""Tests for the walk-in queue: positions, status transitions, recompute."""

import threading
from datetime import datetime

import pytest

from barbershop.errors import BarberNotFoundError, InvalidStatusTransitionError, QueueEntryNotFoundError
from barbershop.models import WalkInQueue
from barbershop.services.queue import QueueManager

from conftest import admit


def positions(queue_manager):
    return [(e.customer_name, e.position) for e in queue_manager.list_waiting()]


class TestJoin:

    def test_positions_follow_join_order(self, queue_manager, barber):
        for name in ("A", "B", "C"):
            queue_manager.join(name, "+353870000000")
        assert positions(queue_manager) == [("A", 1), ("B", 2), ("C", 3)]

    def test_waits_with_one_free_barber(self, queue_manager, barber):
        entries = [queue_manager.join(name, "+353870000000") for name in ("A", "B", "C")]
        assert [e.estimated_wait_minutes for e in entries] == [0, 30, 60]

    def test_no_barbers_fallback(self, queue_manager):
        first = queue_manager.join("A", "+353870000000")
        second = queue_manager.join("B", "+353870000000")
        assert first.estimated_wait_minutes == 60
        assert second.estimated_wait_minutes == 90

    def test_unknown_barber(self, queue_manager, barber):
        with pytest.raises(BarberNotFoundError):
            queue_manager.join("A", "+353870000000", barber_id="nobody")

    def test_queue_ids_unique(self, queue_manager, barber):
        ids = {queue_manager.join(str(i), "+353870000000").queue_id for i in range(5)}
        assert len(ids) == 5


class TestLeave:

    def test_leave_middle_entry(self, db, queue_manager, barber):
        a = queue_manager.join("A", "+353870000000")
        b = queue_manager.join("B", "+353870000000")
        c = queue_manager.join("C", "+353870000000")

        left = queue_manager.leave(b.queue_id)
        assert left.status == "left"
        assert left.position is None

        assert positions(queue_manager) == [("A", 1), ("C", 2)]
        db.refresh(c)
        assert c.estimated_wait_minutes == 30
        assert queue_manager.get_entry(a.queue_id).position == 1

    def test_cannot_leave_twice(self, queue_manager, barber):
        entry = queue_manager.join("A", "+353870000000")
        queue_manager.leave(entry.queue_id)
        with pytest.raises(InvalidStatusTransitionError):
            queue_manager.leave(entry.queue_id)

    def test_unknown_entry(self, queue_manager):
        with pytest.raises(QueueEntryNotFoundError):
            queue_manager.leave("queue_missing")


class TestStatusTransitions:

    def test_service_then_complete(self, queue_manager, barber):
        entry = queue_manager.join("A", "+353870000000")
        in_service = queue_manager.update_status(entry.queue_id, "in_service")
        assert in_service.served_at is not None
        assert in_service.position is None

        done = queue_manager.update_status(entry.queue_id, "completed")
        assert done.status == "completed"

    def test_completed_is_terminal(self, queue_manager, barber):
        entry = queue_manager.join("A", "+353870000000")
        queue_manager.update_status(entry.queue_id, "completed")
        with pytest.raises(InvalidStatusTransitionError):
            queue_manager.update_status(entry.queue_id, "waiting")

    def test_unknown_status(self, queue_manager, barber):
        entry = queue_manager.join("A", "+353870000000")
        with pytest.raises(InvalidStatusTransitionError):
            queue_manager.update_status(entry.queue_id, "teleported")

    def test_positions_stay_dense(self, db, queue_manager, barber):
        entries = [queue_manager.join(str(i), "+353870000000") for i in range(5)]
        queue_manager.update_status(entries[0].queue_id, "in_service")
        queue_manager.update_status(entries[2].queue_id, "no_show")
        queue_manager.leave(entries[4].queue_id)

        waiting = db.query(WalkInQueue).filter(WalkInQueue.status == "waiting").order_by(WalkInQueue.id).all()
        assert [e.position for e in waiting] == [1, 2]


class TestRecomputeAfterAdmission:

    def test_booking_pushes_queue_wait(self, db, clock, queue_manager, booking_service, barber):
        clock.set(datetime(2025, 11, 19, 9, 50))
        entry = queue_manager.join("Walk-in", "+353870000000")
        assert entry.estimated_wait_minutes == 0

        admit(booking_service, appointment_time="10:00")

        db.refresh(entry)
        assert entry.estimated_wait_minutes == 50

    def test_cancellation_releases_queue_wait(self, db, clock, queue_manager, booking_service, barber):
        clock.set(datetime(2025, 11, 19, 9, 50))
        booking = admit(booking_service, appointment_time="10:00")
        entry = queue_manager.join("Walk-in", "+353870000000")
        assert entry.estimated_wait_minutes == 50

        booking_service.cancel(booking.ticket_number, "Sick")

        db.refresh(entry)
        assert entry.estimated_wait_minutes == 0

    def test_recompute_is_idempotent(self, db, queue_manager, barber):
        for name in ("A", "B"):
            queue_manager.join(name, "+353870000000")
        before = [(e.position, e.estimated_wait_minutes) for e in queue_manager.list_waiting()]
        queue_manager.recompute_positions()
        after = [(e.position, e.estimated_wait_minutes) for e in queue_manager.list_waiting()]
        assert before == after


class TestConcurrentJoin:

    def test_positions_unique_and_dense(self, session_factory, clock, locker, config, barber):
        joiners = 8
        start = threading.Barrier(joiners)
        failures = []

        def worker(i):
            session = session_factory()
            try:
                manager = QueueManager(session, clock, locker, config)
                start.wait()
                manager.join(f"Walk-in {i}", "+353870000000")
            except Exception as e:
                failures.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(joiners)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert failures == []

        session = session_factory()
        try:
            waiting = (
                session.query(WalkInQueue)
                .filter(WalkInQueue.status == "waiting")
                .order_by(WalkInQueue.id)
                .all()
            )
            assert [e.position for e in waiting] == list(range(1, joiners + 1))
            assert [e.estimated_wait_minutes for e in waiting] == [30 * i for i in range(joiners)]
        finally:
            session.close()
