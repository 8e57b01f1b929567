from __future__ import annotations

from enum import Enum


class OrderItemStatus(str, Enum):
    PENDING = "PENDING"
    PREPARING = "PREPARING"
    READY = "READY"
    SERVED = "SERVED"
    CANCELLED = "CANCELLED"


class OrderStatus(str, Enum):
    PLACED = "PLACED"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ITEM_TRANSITIONS: dict[OrderItemStatus, frozenset[OrderItemStatus]] = {
    OrderItemStatus.PENDING: frozenset({OrderItemStatus.PREPARING, OrderItemStatus.CANCELLED}),
    OrderItemStatus.PREPARING: frozenset({OrderItemStatus.READY, OrderItemStatus.CANCELLED}),
    OrderItemStatus.READY: frozenset({OrderItemStatus.SERVED, OrderItemStatus.CANCELLED}),
    OrderItemStatus.SERVED: frozenset(),
    OrderItemStatus.CANCELLED: frozenset(),
}

# Manual changes only; everything else is derived from the items.
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PLACED: frozenset({OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_ITEM_STATUSES = frozenset(
    status for status, allowed in ITEM_TRANSITIONS.items() if not allowed
)
TERMINAL_ORDER_STATUSES = frozenset(
    status for status, allowed in ORDER_TRANSITIONS.items() if not allowed
)


class StatusTransitionError(Exception):
    def __init__(self, kind: str, current: str, attempted: str) -> None:
        super().__init__(f"invalid {kind} transition {current} -> {attempted}")
        self.kind = kind
        self.current = current
        self.attempted = attempted


def can_transition_item(current: OrderItemStatus, target: OrderItemStatus) -> bool:
    return target in ITEM_TRANSITIONS[current]


def ensure_item_transition(current: OrderItemStatus, target: OrderItemStatus) -> None:
    if not can_transition_item(current, target):
        raise StatusTransitionError("item", current.value, target.value)


def ensure_order_transition(current: OrderStatus, target: OrderStatus) -> None:
    if target not in ORDER_TRANSITIONS[current]:
        raise StatusTransitionError("order", current.value, target.value)
