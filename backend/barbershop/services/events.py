"""
backend/barbershop/services/events.py

Event emitter: pushes domain events to a Redis list for the notification
collaborator (email / SMS delivery happens outside this service).

Queue:
- events:p2p: booking_created, booking_cancelled, booking_rescheduled,
  queue_joined, queue_updated

Without Redis the emitter is a no-op. Emission never fails the caller.
"""

import json
import time
import logging

from redis import Redis

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


class EventEmitter:
    def __init__(self, redis: Redis | None):
        self.redis = redis

    def emit(self, event_type: str, payload: dict) -> None:
        """Push an event to events:p2p."""
        if self.redis is None:
            logger.debug(f"Event skipped (no redis): {event_type}")
            return

        event = {
            "type": event_type,
            **payload,
            "ts": int(time.time()),
        }
        try:
            self.redis.rpush(P2P_QUEUE, json.dumps(event, default=str))
            logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
        except Exception as e:
            logger.error(f"Failed to emit event {event_type}: {e}")
