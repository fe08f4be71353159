"""
Mutual exclusion for slot admissions and queue mutations.

Key format:
  slot:{YYYY-MM-DD}:{HH:MM}  one admission at a time per slot
  booking:{TICKET}           status changes of one booking
  queue                      join / leave / status / recompute

LocalLocker serializes threads of one process.
RedisLocker serializes across processes (redis-py Lock, lease-based).

Both retry acquisition a fixed number of times and then raise
ConcurrentModificationError; the caller decides whether to retry further.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Protocol

from redis import Redis
from redis.exceptions import LockError

from ...errors import ConcurrentModificationError
from .config import BookingConfig, get_booking_config

logger = logging.getLogger(__name__)

QUEUE_LOCK_KEY = "queue"


def slot_lock_key(dt: date, time_str: str) -> str:
    return f"slot:{dt.isoformat()}:{time_str}"


def booking_lock_key(ticket_number: str) -> str:
    return f"booking:{ticket_number.strip().upper()}"


class SlotLocker(Protocol):
    def hold(self, key: str) -> Iterator[None]: ...


class LocalLocker:
    """
    Per-key threading.Lock registry.

    An entry lives only while some thread holds or waits for its key, so the
    registry stays bounded by the keys in use rather than every slot ever booked.
    """

    def __init__(self, retries: int = 3, wait_seconds: float = 2.0):
        self.retries = retries
        self.wait_seconds = wait_seconds
        # key -> [lock, holders + waiters]
        self._locks: dict[str, list] = {}
        self._registry_lock = threading.Lock()

    def _checkout(self, key: str) -> threading.Lock:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._registry_lock:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            for attempt in range(1, self.retries + 1):
                if lock.acquire(timeout=self.wait_seconds):
                    break
                logger.warning(f"Lock {key} busy (attempt {attempt}/{self.retries})")
            else:
                raise ConcurrentModificationError(
                    f"Could not acquire lock {key} after {self.retries} attempts"
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)


class RedisLocker:
    """Distributed lock per key using redis-py Lock."""

    KEY_PREFIX = "lock"

    def __init__(
        self,
        redis: Redis,
        retries: int = 3,
        wait_seconds: float = 2.0,
        lease_seconds: int = 10,
    ):
        self.redis = redis
        self.retries = retries
        self.wait_seconds = wait_seconds
        self.lease_seconds = lease_seconds

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}:{key}"

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self.redis.lock(
            self._key(key),
            timeout=self.lease_seconds,
            blocking_timeout=self.wait_seconds,
        )
        for attempt in range(1, self.retries + 1):
            if lock.acquire():
                break
            logger.warning(f"Lock {key} busy (attempt {attempt}/{self.retries})")
        else:
            raise ConcurrentModificationError(
                f"Could not acquire lock {key} after {self.retries} attempts"
            )
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # Lease ran out while the critical section was still running
                logger.warning(f"Lock {key} expired before release (lease {self.lease_seconds}s)")


def build_locker(redis: Redis | None, config: BookingConfig | None = None) -> SlotLocker:
    """Redis-backed locks when Redis is configured, in-process locks otherwise."""
    config = config or get_booking_config()
    if redis is not None:
        return RedisLocker(
            redis,
            retries=config.lock_retries,
            wait_seconds=config.lock_wait_seconds,
            lease_seconds=config.lock_lease_seconds,
        )
    return LocalLocker(retries=config.lock_retries, wait_seconds=config.lock_wait_seconds)
