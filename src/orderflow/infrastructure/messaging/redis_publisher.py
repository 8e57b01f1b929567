from __future__ import annotations

import logging

from orderflow.application.ports.services import EventPublisher
from orderflow.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class RedisEventPublisher(EventPublisher):
    """Publishes envelopes on the restaurant's Redis pub/sub channel.

    Redis drops messages nobody is subscribed to; that case is logged at
    debug level and is not an error.
    """

    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, channel: str, message: str) -> None:
        receivers = get_redis_client(timeout_seconds=self._timeout_seconds).publish(channel, message)
        if not receivers:
            logger.debug(
                "event_published_without_subscribers",
                extra={"channel": channel, "receivers": 0},
            )
