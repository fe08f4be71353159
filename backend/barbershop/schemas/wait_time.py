# backend/barbershop/schemas/wait_time.py

from pydantic import BaseModel


class WaitTimeResponse(BaseModel):
    current_wait_minutes: int
    queue_length: int
    active_barber_count: int
    next_available_time: str  # HH:MM


class EntryWaitResponse(BaseModel):
    queue_id: str
    estimated_wait_minutes: int
