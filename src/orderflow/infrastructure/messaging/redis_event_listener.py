from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from redis import asyncio as redis_asyncio

from orderflow.application.mappers.event_envelope import (
    EVENT_CHANNEL_PREFIX,
    restaurant_from_channel,
)
from orderflow.infrastructure.cache.redis_client import create_async_client, redis_url

logger = logging.getLogger(__name__)

KitchenSnapshot = Callable[[str], str]

CHANNEL_PATTERN = f"{EVENT_CHANNEL_PREFIX}:*"
MAX_BACKOFF_SECONDS = 5.0


class _Backoff:
    def __init__(self) -> None:
        self.seconds = 1.0

    def reset(self) -> None:
        self.seconds = 1.0

    def grow(self) -> None:
        self.seconds = min(self.seconds * 2, MAX_BACKOFF_SECONDS)


def _as_text(value: bytes | str | None) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


async def _push_kitchen_snapshot(app_state: Any, restaurant_id: str) -> None:
    snapshot: KitchenSnapshot | None = getattr(app_state, "kitchen_snapshot", None)
    if snapshot is None:
        return
    try:
        message = await asyncio.to_thread(snapshot, restaurant_id)
    except Exception:
        logger.exception("kitchen_snapshot_failed", extra={"restaurant_id": restaurant_id})
        return
    await app_state.ws_manager.broadcast(restaurant_id=restaurant_id, message_json_str=message)


async def relay_message(app_state: Any, message: Mapping[str, Any]) -> str | None:
    """Forwards one pub/sub message and a fresh kitchen snapshot.

    Returns the restaurant id the message was relayed to, or ``None`` when
    the message was skipped.
    """
    channel = _as_text(message.get("channel"))
    payload = _as_text(message.get("data"))
    if not channel or not payload:
        return None

    restaurant_id = restaurant_from_channel(channel)
    if restaurant_id is None:
        logger.warning("redis_fanout_invalid_channel", extra={"channel": channel})
        return None

    manager = app_state.ws_manager
    if manager.connection_count(restaurant_id) == 0:
        return None
    await manager.broadcast(restaurant_id=restaurant_id, message_json_str=payload)
    await _push_kitchen_snapshot(app_state, restaurant_id)
    return restaurant_id


async def _consume(url: str, app_state: Any, backoff: _Backoff) -> None:
    client = create_async_client(url)
    pubsub: redis_asyncio.client.PubSub = client.pubsub()
    try:
        await pubsub.psubscribe(CHANNEL_PATTERN)
        logger.info("redis_fanout_subscribed", extra={"channel": CHANNEL_PATTERN})
        backoff.reset()
        while True:
            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            if message is None:
                await asyncio.sleep(0.05)
                continue
            await relay_message(app_state, message)
    finally:
        await pubsub.aclose()
        await client.aclose()


async def start_redis_fanout(app_state: Any) -> None:
    """Relays ``events:{restaurant_id}`` messages to that restaurant's sockets.

    Reconnects with exponential backoff until cancelled.
    """
    url = redis_url()
    if url is None:
        logger.warning("redis_fanout_not_started", extra={"operation": "fanout"})
        return

    backoff = _Backoff()
    while True:
        try:
            await _consume(url, app_state, backoff)
        except asyncio.CancelledError:
            logger.info("redis_fanout_cancelled")
            raise
        except Exception:
            logger.exception("redis_fanout_error", extra={"backoff_seconds": backoff.seconds})
            await asyncio.sleep(backoff.seconds)
            backoff.grow()
