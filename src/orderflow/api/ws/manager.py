from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from fastapi import WebSocket

logger = logging.getLogger(__name__)

SEND_TIMEOUT_SECONDS = 2.0


@dataclass(frozen=True)
class Subscriber:
    restaurant_id: str
    role: str


class ConnectionManager:
    """Open kitchen and floor sockets grouped by restaurant.

    A socket that fails or stalls on send is dropped; the client reconnects
    and receives a fresh kitchen snapshot.
    """

    def __init__(self, send_timeout_seconds: float = SEND_TIMEOUT_SECONDS) -> None:
        self._subscribers: dict[WebSocket, Subscriber] = {}
        self._send_timeout_seconds = send_timeout_seconds
        self._lock = asyncio.Lock()

    async def register(self, websocket: WebSocket, restaurant_id: str, role: str) -> None:
        await websocket.accept()
        async with self._lock:
            self._subscribers[websocket] = Subscriber(restaurant_id=restaurant_id, role=role)
        logger.info("ws_client_connected", extra={"restaurant_id": restaurant_id, "role": role})

    async def unregister(self, websocket: WebSocket) -> None:
        async with self._lock:
            subscriber = self._subscribers.pop(websocket, None)
        if subscriber is not None:
            logger.info(
                "ws_client_disconnected",
                extra={"restaurant_id": subscriber.restaurant_id, "role": subscriber.role},
            )

    def connection_count(self, restaurant_id: str) -> int:
        return sum(1 for sub in self._subscribers.values() if sub.restaurant_id == restaurant_id)

    async def send_to(self, websocket: WebSocket, message_json_str: str) -> bool:
        try:
            await asyncio.wait_for(
                websocket.send_text(message_json_str),
                timeout=self._send_timeout_seconds,
            )
        except Exception:
            await self.unregister(websocket)
            return False
        return True

    async def broadcast(self, restaurant_id: str, message_json_str: str) -> int:
        """Sends to every socket of ``restaurant_id``; returns how many received it."""
        async with self._lock:
            targets = [
                websocket
                for websocket, sub in self._subscribers.items()
                if sub.restaurant_id == restaurant_id
            ]
        if not targets:
            return 0
        results = await asyncio.gather(
            *(self.send_to(websocket, message_json_str) for websocket in targets)
        )
        return sum(results)
