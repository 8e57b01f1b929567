from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from orderflow.api.ws.manager import ConnectionManager

router = APIRouter()
logger = logging.getLogger(__name__)


async def _send_kitchen_snapshot(
    websocket: WebSocket,
    manager: ConnectionManager,
    restaurant_id: str,
) -> None:
    snapshot = getattr(websocket.app.state, "kitchen_snapshot", None)
    if snapshot is None:
        return
    try:
        message = await asyncio.to_thread(snapshot, restaurant_id)
    except Exception:
        logger.exception("kitchen_snapshot_failed", extra={"restaurant_id": restaurant_id})
        return
    await manager.send_to(websocket, message)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Live feed of ``events:{restaurant_id}`` plus kitchen view snapshots.

    Query parameters: ``restaurant_id`` (required) and ``role`` (informational).
    """
    restaurant_id = (websocket.query_params.get("restaurant_id") or "").strip()
    role = (websocket.query_params.get("role") or "UNKNOWN").strip().upper()
    if not restaurant_id:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION,
            reason="restaurant_id query parameter is required",
        )
        return

    manager: ConnectionManager = websocket.app.state.ws_manager
    await manager.register(websocket=websocket, restaurant_id=restaurant_id, role=role)
    await _send_kitchen_snapshot(websocket, manager, restaurant_id)

    try:
        while True:
            # Inbound frames are keepalives only.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("ws_connection_error", extra={"restaurant_id": restaurant_id})
    finally:
        await manager.unregister(websocket)
