# backend/barbershop/routers/wait_time.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db, persistence_guard
from ..dependencies import get_clock
from ..schemas.wait_time import EntryWaitResponse, WaitTimeResponse
from ..services.wait_time import WaitTimeService

router = APIRouter(prefix="/wait-time", tags=["wait-time"])


@router.get("", response_model=WaitTimeResponse)
def get_wait_time(db: Session = Depends(get_db), clock=Depends(get_clock)):
    """Wait a customer walking in right now would face."""
    with persistence_guard(db):
        return WaitTimeResponse(**WaitTimeService(db, clock).summary())


@router.get("/{queue_id}", response_model=EntryWaitResponse)
def get_entry_wait_time(queue_id: str, db: Session = Depends(get_db), clock=Depends(get_clock)):
    with persistence_guard(db):
        wait = WaitTimeService(db, clock).wait_for(queue_id)
    return EntryWaitResponse(queue_id=queue_id, estimated_wait_minutes=wait)
