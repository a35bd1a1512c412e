from __future__ import annotations

import logging

from rms.application.ports.publisher import EventPublisher
from rms.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class RedisEventPublisher(EventPublisher):
    """Publishes serialized order events on a Redis pub/sub channel."""

    def __init__(self, timeout_seconds: float = 0.5) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, channel: str, message: str) -> None:
        receivers = get_redis_client(timeout_seconds=self._timeout_seconds).publish(
            channel, message
        )
        logger.debug("event_published", extra={"channel": channel, "receivers": receivers})
