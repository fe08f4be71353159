"""
Wait-time simulation.

simulate() is a pure function of (now, barbers, appointments, waiting
customers, config). WaitTimeService loads those inputs from the database
and runs it; nothing is cached between calls.

Algorithm:
1. free_at[barber] = now for every active barber.
2. Appointments (confirmed, today, not yet finished, starting within
   lookahead_minutes) in start order go to their preferred barber when
   that barber is active, otherwise to the barber free earliest.
   free_at = max(free_at, start) + duration. An appointment already in
   progress keeps its barber busy until its own end.
3. Waiting customers in position order go to their preferred barber or
   the barber free earliest; their wait is free_at - now (floor 0) and
   free_at advances by default_service_minutes.
4. current wait = earliest free_at - now (floor 0): the wait a customer
   walking in right now would face.

Ties between barbers are broken by barber order, so equal inputs always
give equal outputs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ..errors import QueueEntryNotFoundError
from ..models.generated import Barbers, Bookings, WalkInQueue
from .slots.config import BookingConfig, get_booking_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Appointment:
    start: datetime
    duration_minutes: int
    barber_id: str | None = None
    ref: str = ""


@dataclass(frozen=True)
class WaitingCustomer:
    queue_id: str
    barber_id: str | None = None


@dataclass(frozen=True)
class EntryEstimate:
    queue_id: str
    position: int
    estimated_wait_minutes: int
    barber_id: str | None  # transient assignment, never persisted


@dataclass
class SimulationResult:
    now: datetime
    current_wait_minutes: int
    next_available: datetime
    active_barber_count: int
    entries: list[EntryEstimate] = field(default_factory=list)
    free_at: dict[str, datetime] = field(default_factory=dict)

    @property
    def queue_length(self) -> int:
        return len(self.entries)

    def wait_for(self, queue_id: str) -> int | None:
        for entry in self.entries:
            if entry.queue_id == queue_id:
                return entry.estimated_wait_minutes
        return None


def _minutes(delta: timedelta) -> int:
    """Whole minutes, rounded half up, never negative."""
    seconds = max(0.0, delta.total_seconds())
    return int((seconds + 30) // 60)


def _pick_barber(
    free_at: dict[str, datetime],
    order: list[str],
    preferred: str | None,
) -> str:
    if preferred is not None and preferred in free_at:
        return preferred
    return min(enumerate(order), key=lambda item: (free_at[item[1]], item[0]))[1]


def simulate(
    now: datetime,
    barber_ids: list[str],
    appointments: list[Appointment],
    waiting: list[WaitingCustomer],
    config: BookingConfig | None = None,
) -> SimulationResult:
    """
    Run the forward-time simulation.

    Args:
        now: Simulation start (naive local time)
        barber_ids: Active barbers in tie-break order
        appointments: Confirmed appointments (filtered here by time)
        waiting: Waiting customers in position order
    """
    config = config or get_booking_config()
    service_step = timedelta(minutes=config.default_service_minutes)

    if not barber_ids:
        fallback = config.no_barber_wait_minutes
        entries = [
            EntryEstimate(
                queue_id=customer.queue_id,
                position=i,
                estimated_wait_minutes=fallback + (i - 1) * config.default_service_minutes,
                barber_id=None,
            )
            for i, customer in enumerate(waiting, start=1)
        ]
        return SimulationResult(
            now=now,
            current_wait_minutes=fallback,
            next_available=now + timedelta(minutes=fallback),
            active_barber_count=0,
            entries=entries,
        )

    order = list(barber_ids)
    free_at = {barber_id: now for barber_id in order}

    # Step 1: scheduled appointments
    horizon = now + timedelta(minutes=config.lookahead_minutes)
    upcoming = sorted(
        (
            a for a in appointments
            if a.start + timedelta(minutes=a.duration_minutes) > now and a.start <= horizon
        ),
        key=lambda a: (a.start, a.ref),
    )
    for appt in upcoming:
        barber = _pick_barber(free_at, order, appt.barber_id)
        end = appt.start + timedelta(minutes=appt.duration_minutes)
        if appt.start < now:
            free_at[barber] = max(free_at[barber], end)
        else:
            free_at[barber] = max(free_at[barber], appt.start) + timedelta(minutes=appt.duration_minutes)

    # Step 2: walk-in queue
    entries = []
    for position, customer in enumerate(waiting, start=1):
        barber = _pick_barber(free_at, order, customer.barber_id)
        entries.append(EntryEstimate(
            queue_id=customer.queue_id,
            position=position,
            estimated_wait_minutes=_minutes(free_at[barber] - now),
            barber_id=barber,
        ))
        free_at[barber] = max(free_at[barber], now) + service_step

    earliest = max(now, min(free_at.values()))
    return SimulationResult(
        now=now,
        current_wait_minutes=_minutes(earliest - now),
        next_available=earliest,
        active_barber_count=len(order),
        entries=entries,
        free_at=dict(free_at),
    )


class WaitTimeService:
    """Loads simulator inputs from the store and answers wait-time queries."""

    def __init__(self, db: Session, clock, config: BookingConfig | None = None):
        self.db = db
        self.clock = clock
        self.config = config or get_booking_config()

    def run(self) -> SimulationResult:
        now = self.clock.now()
        return simulate(
            now=now,
            barber_ids=self._active_barber_ids(),
            appointments=self._todays_appointments(now),
            waiting=self._waiting_customers(),
            config=self.config,
        )

    def current_wait(self) -> int:
        return self.run().current_wait_minutes

    def wait_for(self, queue_id: str) -> int:
        """Estimated wait of a still-waiting queue entry."""
        wait = self.run().wait_for(queue_id)
        if wait is None:
            raise QueueEntryNotFoundError(f"Queue entry {queue_id} is not waiting")
        return wait

    def summary(self) -> dict:
        result = self.run()
        return {
            "current_wait_minutes": result.current_wait_minutes,
            "queue_length": result.queue_length,
            "active_barber_count": result.active_barber_count,
            "next_available_time": result.next_available.strftime("%H:%M"),
        }

    # ── Inputs ───────────────────────────────────────────────────────────

    def _active_barber_ids(self) -> list[str]:
        rows = (
            self.db.query(Barbers.barber_id)
            .filter(Barbers.is_active == 1)
            .order_by(Barbers.display_order.asc(), Barbers.barber_id.asc())
            .all()
        )
        return [r[0] for r in rows]

    def _todays_appointments(self, now: datetime) -> list[Appointment]:
        day = now.date().isoformat()
        rows = (
            self.db.query(Bookings)
            .filter(
                Bookings.appointment_date == day,
                Bookings.status == "confirmed",
            )
            .all()
        )
        appointments = []
        for booking in rows:
            try:
                start = datetime.fromisoformat(f"{booking.appointment_date}T{booking.appointment_time}")
            except ValueError:
                logger.warning(f"Skipping booking {booking.ticket_number}: bad time {booking.appointment_time!r}")
                continue
            appointments.append(Appointment(
                start=start,
                duration_minutes=booking.slot_duration or self.config.default_slot_duration,
                barber_id=booking.barber_id,
                ref=booking.ticket_number,
            ))
        return appointments

    def _waiting_customers(self) -> list[WaitingCustomer]:
        rows = (
            self.db.query(WalkInQueue.queue_id, WalkInQueue.barber_id)
            .filter(WalkInQueue.status == "waiting")
            .order_by(WalkInQueue.id.asc())
            .all()
        )
        return [WaitingCustomer(queue_id=q, barber_id=b) for q, b in rows]
