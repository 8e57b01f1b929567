from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from orderflow.domain.common.ids import EventId, OrderId, RestaurantId, StaffId


class EntityType(str, Enum):
    ORDER = "ORDER"
    ORDER_ITEM = "ORDER_ITEM"
    TABLE = "TABLE"


class EventType(str, Enum):
    CREATED = "CREATED"
    ITEM_ADDED = "ITEM_ADDED"
    ITEM_STATUS_CHANGED = "ITEM_STATUS_CHANGED"
    ORDER_STATUS_DERIVED = "ORDER_STATUS_DERIVED"
    STATUS_CHANGED = "STATUS_CHANGED"
    WAITER_TRANSFERRED = "WAITER_TRANSFERRED"
    TABLE_STATUS_CHANGED = "TABLE_STATUS_CHANGED"


@dataclass(frozen=True)
class Event:
    """Audit record of one state change. Never updated once appended."""

    event_id: EventId
    restaurant_id: RestaurantId
    entity_type: EntityType
    entity_id: str
    event_type: EventType
    old_value: str | None
    new_value: str | None
    actor_id: StaffId
    occurred_at: datetime
    order_id: OrderId | None = None
