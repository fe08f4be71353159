import logging

from fastapi import FastAPI

from .api_errors import scheduling_error_handler
from .config import settings
from .errors import SchedulingError
from .redis_client import redis_client
from .routers import (
    availability,
    bookings,
    capacity_overrides,
    queue,
    wait_time,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Barbershop Scheduling API")

app.add_exception_handler(SchedulingError, scheduling_error_handler)

app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(queue.router)
app.include_router(wait_time.router)
app.include_router(capacity_overrides.router)


@app.get("/health")
def health():
    redis_ok = None
    if redis_client is not None:
        try:
            redis_ok = redis_client.ping()
        except Exception as e:
            logging.getLogger(__name__).warning(f"Redis ping failed: {e}")
            redis_ok = False
    return {"status": "ok", "redis": redis_ok}
