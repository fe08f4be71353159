"""
Walk-in queue manager.

Positions are never stored as a source of truth: every mutation re-ranks
the waiting entries by join order (WalkInQueue.id) into 1..n and re-runs the
wait-time simulation, all under the queue lock and in the same transaction
as the mutation itself.

Status transitions:
  waiting    → in_service | completed | no_show | left
  in_service → completed | no_show
"""

import logging
import uuid

from sqlalchemy.orm import Session

from ..database import persistence_guard
from ..errors import BarberNotFoundError, InvalidStatusTransitionError, QueueEntryNotFoundError
from ..models.generated import Barbers, WalkInQueue
from .events import EventEmitter
from .slots.config import BookingConfig, get_booking_config
from .slots.locks import QUEUE_LOCK_KEY, SlotLocker
from .wait_time import SimulationResult, WaitTimeService

logger = logging.getLogger(__name__)

WAITING = "waiting"
QUEUE_STATUSES = ("waiting", "in_service", "completed", "no_show", "left")

ALLOWED_TRANSITIONS = {
    "waiting": {"in_service", "completed", "no_show", "left"},
    "in_service": {"completed", "no_show"},
}


class QueueManager:
    """Join / leave / status changes on the walk-in queue."""

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

    # ── Queries ──────────────────────────────────────────────────────────

    def get_entry(self, queue_id: str) -> WalkInQueue:
        with persistence_guard(self.db):
            entry = self.db.query(WalkInQueue).filter(WalkInQueue.queue_id == queue_id).first()
        if not entry:
            raise QueueEntryNotFoundError(f"Queue entry {queue_id} not found")
        return entry

    def list_waiting(self) -> list[WalkInQueue]:
        with persistence_guard(self.db):
            return (
                self.db.query(WalkInQueue)
                .filter(WalkInQueue.status == WAITING)
                .order_by(WalkInQueue.id.asc())
                .all()
            )

    # ── Mutations ────────────────────────────────────────────────────────

    def join(
        self,
        customer_name: str,
        customer_phone: str,
        barber_id: str | None = None,
    ) -> WalkInQueue:
        """Append a waiting entry at the tail and assign its position and wait."""
        with persistence_guard(self.db):
            if barber_id is not None:
                self._require_active_barber(barber_id)

            with self.locker.hold(QUEUE_LOCK_KEY):
                now = self.clock.now().isoformat()
                entry = WalkInQueue(
                    queue_id=f"queue_{uuid.uuid4().hex[:16]}",
                    customer_name=customer_name,
                    customer_phone=customer_phone,
                    barber_id=barber_id,
                    status=WAITING,
                    estimated_wait_minutes=0,
                    created_at=now,
                    updated_at=now,
                )
                self.db.add(entry)
                self.db.flush()
                self._recompute_locked()
                self.db.commit()

        logger.info(
            f"Queue join: {entry.queue_id} position={entry.position} "
            f"wait={entry.estimated_wait_minutes}min barber={barber_id or 'any'}"
        )
        self.events.emit("queue_joined", {
            "queue_id": entry.queue_id,
            "position": entry.position,
            "estimated_wait_minutes": entry.estimated_wait_minutes,
        })
        return entry

    def leave(self, queue_id: str) -> WalkInQueue:
        """Customer walked away; remaining entries move up."""
        return self.update_status(queue_id, "left")

    def update_status(self, queue_id: str, new_status: str) -> WalkInQueue:
        """Move an entry to a new status and recompute the remaining queue."""
        if new_status not in QUEUE_STATUSES:
            raise InvalidStatusTransitionError(f"Unknown queue status: {new_status}")

        with persistence_guard(self.db):
            with self.locker.hold(QUEUE_LOCK_KEY):
                entry = self.db.query(WalkInQueue).filter(WalkInQueue.queue_id == queue_id).first()
                if not entry:
                    raise QueueEntryNotFoundError(f"Queue entry {queue_id} not found")

                if new_status not in ALLOWED_TRANSITIONS.get(entry.status, set()):
                    raise InvalidStatusTransitionError(
                        f"Cannot change queue entry from {entry.status} to {new_status}"
                    )

                old_status = entry.status
                now = self.clock.now().isoformat()
                entry.status = new_status
                entry.updated_at = now
                if new_status in ("in_service", "completed") and not entry.served_at:
                    entry.served_at = now

                self.db.flush()
                self._recompute_locked()
                self.db.commit()

        logger.info(f"Queue entry {queue_id}: {old_status} → {new_status}")
        self.events.emit("queue_updated", {"queue_id": queue_id, "status": new_status})
        return entry

    def recompute_positions(self) -> SimulationResult:
        """Re-rank waiting entries and refresh their estimated waits."""
        with persistence_guard(self.db):
            with self.locker.hold(QUEUE_LOCK_KEY):
                result = self._recompute_locked()
                self.db.commit()
        return result

    # ── Internals (queue lock held) ──────────────────────────────────────

    def _recompute_locked(self) -> SimulationResult:
        waiting = (
            self.db.query(WalkInQueue)
            .filter(WalkInQueue.status == WAITING)
            .order_by(WalkInQueue.id.asc())
            .all()
        )
        now = self.clock.now().isoformat()

        for position, entry in enumerate(waiting, start=1):
            if entry.position != position:
                entry.position = position
                entry.updated_at = now

        stale = (
            self.db.query(WalkInQueue)
            .filter(WalkInQueue.status != WAITING, WalkInQueue.position.isnot(None))
            .all()
        )
        for entry in stale:
            entry.position = None
            entry.estimated_wait_minutes = 0

        self.db.flush()

        result = WaitTimeService(self.db, self.clock, self.config).run()
        for entry in waiting:
            wait = result.wait_for(entry.queue_id)
            if wait is not None and entry.estimated_wait_minutes != wait:
                entry.estimated_wait_minutes = wait
                entry.updated_at = now

        self.db.flush()
        logger.debug(
            f"Queue recomputed: {len(waiting)} waiting, current wait {result.current_wait_minutes}min"
        )
        return result

    def _require_active_barber(self, barber_id: str) -> None:
        barber = self.db.get(Barbers, barber_id)
        if not barber or not barber.is_active:
            raise BarberNotFoundError(f"Barber {barber_id} not found or inactive")
