"""Shared test fixtures and helpers."""

import os

# Must be set before barbershop.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from barbershop.clock import FixedClock
from barbershop.database import build_engine, get_db
from barbershop.dependencies import get_clock, get_events, get_locker
from barbershop.main import app
from barbershop.models import Barbers, Base, CapacityOverrides, Services
from barbershop.services.bookings import BookingService
from barbershop.services.events import EventEmitter
from barbershop.services.queue import QueueManager
from barbershop.services.slots import BookingConfig, LocalLocker

# Wednesday: nominal capacity 2 per slot
TODAY = date(2025, 11, 19)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config():
    return BookingConfig()


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 11, 19, 9, 0))


@pytest.fixture
def locker():
    return LocalLocker(retries=3, wait_seconds=5.0)


@pytest.fixture
def barber(db):
    obj = Barbers(barber_id="barber_1", name="Alex", is_active=1, display_order=0)
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def haircut(db):
    obj = Services(service_id="haircut", name="Haircut", duration=40, is_active=1)
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def booking_service(db, clock, locker, config):
    return BookingService(db, clock, locker, config)


@pytest.fixture
def queue_manager(db, clock, locker, config):
    return QueueManager(db, clock, locker, config)


@pytest.fixture
def client(session_factory, clock, locker):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_locker] = lambda: locker
    app.dependency_overrides[get_events] = lambda: EventEmitter(None)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def add_override(db, override_date: str, capacity: int, time_slot: str | None = None):
    """Helper to create an active capacity override."""
    obj = CapacityOverrides(override_date=override_date, time_slot=time_slot, capacity=capacity)
    db.add(obj)
    db.commit()
    return obj


def admit(service: BookingService, appointment_date="2025-11-19", appointment_time="10:00", **kwargs):
    """Helper to admit a booking with throwaway customer details."""
    fields = {
        "customer_name": "Jane Doe",
        "customer_email": "jane@example.com",
        "customer_phone": "+353851234567",
    }
    fields.update(kwargs)
    return service.admit(appointment_date, appointment_time, **fields)
