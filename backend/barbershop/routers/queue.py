# backend/barbershop/routers/queue.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db, persistence_guard
from ..dependencies import get_clock, get_events, get_locker
from ..schemas.queue import QueueEntryRead, QueueJoin, QueueListResponse, QueueStatusUpdate
from ..services.queue import QueueManager
from ..services.wait_time import WaitTimeService

router = APIRouter(prefix="/queue", tags=["queue"])


def get_queue_manager(
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
    locker=Depends(get_locker),
    events=Depends(get_events),
) -> QueueManager:
    return QueueManager(db, clock, locker, events=events)


@router.get("", response_model=QueueListResponse)
def list_queue(
    manager: QueueManager = Depends(get_queue_manager),
):
    """Waiting entries in position order, with waits re-derived for now."""
    entries = manager.list_waiting()
    with persistence_guard(manager.db):
        result = WaitTimeService(manager.db, manager.clock, manager.config).run()

    items = []
    for entry in entries:
        item = QueueEntryRead.model_validate(entry)
        wait = result.wait_for(entry.queue_id)
        if wait is not None:
            item = item.model_copy(update={"estimated_wait_minutes": wait})
        items.append(item)

    return QueueListResponse(
        current_wait_minutes=result.current_wait_minutes,
        queue_length=result.queue_length,
        entries=items,
    )


@router.post("/join", response_model=QueueEntryRead, status_code=status.HTTP_201_CREATED)
def join_queue(
    data: QueueJoin,
    manager: QueueManager = Depends(get_queue_manager),
):
    return manager.join(data.customer_name, data.customer_phone, data.barber_id)


@router.get("/{queue_id}", response_model=QueueEntryRead)
def get_queue_entry(
    queue_id: str,
    manager: QueueManager = Depends(get_queue_manager),
):
    return manager.get_entry(queue_id)


@router.post("/{queue_id}/leave", response_model=QueueEntryRead)
def leave_queue(
    queue_id: str,
    manager: QueueManager = Depends(get_queue_manager),
):
    return manager.leave(queue_id)


@router.patch("/{queue_id}/status", response_model=QueueEntryRead)
def update_queue_status(
    queue_id: str,
    data: QueueStatusUpdate,
    manager: QueueManager = Depends(get_queue_manager),
):
    return manager.update_status(queue_id, data.status)
