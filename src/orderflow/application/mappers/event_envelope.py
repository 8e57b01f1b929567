from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import uuid4

from orderflow.application.dto.responses import KitchenViewResponse
from orderflow.domain.order.entities import Order, OrderItem
from orderflow.domain.table.entities import Table


@dataclass(frozen=True)
class TraceContext:
    """Correlation ids copied onto every envelope published for one request."""

    trace_id: str | None
    request_id: str | None


NO_TRACE = TraceContext(trace_id=None, request_id=None)

EVENT_CHANNEL_PREFIX = "events"


def channel_for(restaurant_id: str) -> str:
    return f"{EVENT_CHANNEL_PREFIX}:{restaurant_id}"


def restaurant_from_channel(channel: str) -> str | None:
    prefix, _, restaurant_id = channel.partition(":")
    if prefix != EVENT_CHANNEL_PREFIX or not restaurant_id:
        return None
    return restaurant_id


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    restaurant_id: str,
    payload: dict[str, Any],
    trace: TraceContext,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": trace.request_id,
        "trace_id": trace.trace_id,
        "restaurant_id": restaurant_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_order_event(
    *,
    event_type: str,
    occurred_at: datetime,
    order: Order,
    items: Iterable[OrderItem],
    trace: TraceContext = NO_TRACE,
) -> str:
    return _serialize_event(
        event_type=event_type,
        occurred_at=occurred_at,
        restaurant_id=str(order.restaurant_id),
        trace=trace,
        payload={
            "orderId": str(order.order_id),
            "tableId": str(order.table_id) if order.table_id is not None else None,
            "staffId": str(order.staff_id),
            "status": order.status.value,
            "servePolicy": order.serve_policy.value,
            "version": order.version,
            "createdAt": order.created_at.isoformat(),
            "updatedAt": order.updated_at.isoformat(),
            "items": [
                {
                    "itemId": str(item.item_id),
                    "menuItemId": str(item.menu_item_id),
                    "quantity": item.quantity,
                    "status": item.status.value,
                    "note": item.note,
                    "startedAt": _isoformat(item.started_at),
                    "completedAt": _isoformat(item.completed_at),
                }
                for item in items
            ],
        },
    )


def serialize_table_event(
    *,
    event_type: str,
    occurred_at: datetime,
    table: Table,
    trace: TraceContext = NO_TRACE,
) -> str:
    return _serialize_event(
        event_type=event_type,
        occurred_at=occurred_at,
        restaurant_id=str(table.restaurant_id),
        trace=trace,
        payload={
            "tableId": str(table.table_id),
            "restaurantId": str(table.restaurant_id),
            "label": table.label,
            "status": table.status.value,
            "updatedAt": table.updated_at.isoformat(),
        },
    )


def serialize_kitchen_view_event(
    *,
    occurred_at: datetime,
    view: KitchenViewResponse,
) -> str:
    return _serialize_event(
        event_type="kitchen.view",
        occurred_at=occurred_at,
        restaurant_id=view.restaurantId,
        payload=view.model_dump(mode="json"),
        trace=NO_TRACE,
    )
