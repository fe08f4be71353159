# backend/barbershop/dependencies.py
"""
FastAPI dependencies shared by the routers.

Clock, locker and event emitter are process-wide; tests swap them through
app.dependency_overrides.
"""

from .clock import SystemClock
from .config import settings
from .redis_client import redis_client
from .services.events import EventEmitter
from .services.slots import build_locker, get_booking_config

_clock = SystemClock(settings.timezone)
_locker = build_locker(redis_client, get_booking_config())
_events = EventEmitter(redis_client)


def get_clock():
    return _clock


def get_locker():
    return _locker


def get_events():
    return _events
