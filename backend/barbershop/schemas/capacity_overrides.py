# backend/barbershop/schemas/capacity_overrides.py

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class CapacityOverrideCreate(BaseModel):
    override_date: date
    time_slot: Optional[str] = None  # None = whole day
    capacity: int = Field(ge=0)
    reason: Optional[str] = None

    model_config = {"from_attributes": True}


class CapacityOverrideRead(BaseModel):
    id: int

    override_date: date
    time_slot: Optional[str] = None
    capacity: int
    is_active: bool
    reason: Optional[str] = None

    created_at: Optional[str] = None

    model_config = {"from_attributes": True}
