# backend/barbershop/routers/capacity_overrides.py
# PATCH = 405, DELETE = ALLOWED (hard)

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..api_errors import rejection_error
from ..database import get_db, persistence_guard
from ..errors import Rejection, RejectionKind
from ..models.generated import CapacityOverrides as DBCapacityOverrides
from ..schemas.capacity_overrides import (
    CapacityOverrideCreate,
    CapacityOverrideRead,
)
from ..services.slots import get_booking_config

router = APIRouter(prefix="/capacity_overrides", tags=["capacity_overrides"])


@router.get("", response_model=list[CapacityOverrideRead])
def list_capacity_overrides(
    override_date: str | None = None,
    db: Session = Depends(get_db),
):
    with persistence_guard(db):
        query = db.query(DBCapacityOverrides)
        if override_date is not None:
            query = query.filter(DBCapacityOverrides.override_date == override_date)
        return query.order_by(DBCapacityOverrides.override_date, DBCapacityOverrides.id).all()


@router.get("/{id}", response_model=CapacityOverrideRead)
def get_capacity_override(id: int, db: Session = Depends(get_db)):
    with persistence_guard(db):
        obj = db.get(DBCapacityOverrides, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post(
    "", response_model=CapacityOverrideRead, status_code=status.HTTP_201_CREATED
)
def create_capacity_override(
    data: CapacityOverrideCreate,
    db: Session = Depends(get_db),
):
    if data.time_slot is not None and not get_booking_config().is_slot_time(data.time_slot):
        raise rejection_error(Rejection(
            RejectionKind.INVALID_TIME_SLOT,
            f"{data.time_slot} is not a bookable time slot",
        ))

    obj = DBCapacityOverrides(
        override_date=data.override_date.isoformat(),
        time_slot=data.time_slot,
        capacity=data.capacity,
        reason=data.reason,
    )
    with persistence_guard(db):
        db.add(obj)
        db.commit()
        db.refresh(obj)
    return obj


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_capacity_override(id: int, db: Session = Depends(get_db)):
    with persistence_guard(db):
        obj = db.get(DBCapacityOverrides, id)
        if not obj:
            raise HTTPException(status_code=404, detail="Not found")
        db.delete(obj)
        db.commit()
