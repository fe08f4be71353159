# backend/barbershop/schemas/queue.py

from typing import Optional
from pydantic import BaseModel, Field


class QueueJoin(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_phone: str = Field(min_length=5)
    barber_id: Optional[str] = None


class QueueStatusUpdate(BaseModel):
    status: str


class QueueEntryRead(BaseModel):
    queue_id: str
    customer_name: str
    customer_phone: str
    barber_id: Optional[str] = None

    status: str
    position: Optional[int] = None
    estimated_wait_minutes: int

    created_at: str
    updated_at: str
    served_at: Optional[str] = None

    model_config = {"from_attributes": True}


class QueueListResponse(BaseModel):
    current_wait_minutes: int
    queue_length: int
    entries: list[QueueEntryRead]
