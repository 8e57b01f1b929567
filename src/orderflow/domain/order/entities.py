from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from orderflow.domain.common.ids import (
    MenuItemId,
    OrderId,
    OrderItemId,
    RestaurantId,
    StaffId,
    TableId,
)
from orderflow.domain.order.transitions import (
    TERMINAL_ORDER_STATUSES,
    OrderItemStatus,
    OrderStatus,
    ensure_item_transition,
)


class ServePolicy(str, Enum):
    PARTIAL = "PARTIAL"
    ALL_AT_ONCE = "ALL_AT_ONCE"


class OrderLockedError(Exception):
    def __init__(self, order_id: OrderId, status: OrderStatus, message: str) -> None:
        super().__init__(message)
        self.order_id = order_id
        self.status = status


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    restaurant_id: RestaurantId
    table_id: TableId | None
    staff_id: StaffId
    status: OrderStatus
    serve_policy: ServePolicy
    created_at: datetime
    updated_at: datetime
    customer_name: str | None = None
    customer_phone: str | None = None
    note: str | None = None
    version: int = 1

    def __post_init__(self) -> None:
        if self.version < 1:
            raise ValueError("version must be >= 1")
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not precede created_at")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES

    @property
    def is_takeaway(self) -> bool:
        return self.table_id is None

    def ensure_accepts_items(self) -> None:
        if self.status != OrderStatus.PLACED:
            raise OrderLockedError(
                self.order_id,
                self.status,
                f"order {self.order_id} no longer accepts items (status={self.status.value})",
            )

    def ensure_open(self) -> None:
        if self.is_terminal:
            raise OrderLockedError(
                self.order_id,
                self.status,
                f"order {self.order_id} is closed (status={self.status.value})",
            )

    def with_status(self, status: OrderStatus, now: datetime) -> Order:
        return replace(self, status=status, updated_at=now)

    def with_staff(self, staff_id: StaffId, now: datetime) -> Order:
        return replace(self, staff_id=staff_id, updated_at=now)


@dataclass(frozen=True)
class OrderItem:
    item_id: OrderItemId
    order_id: OrderId
    menu_item_id: MenuItemId
    quantity: int
    status: OrderItemStatus
    created_at: datetime
    updated_at: datetime
    note: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.started_at is not None and self.completed_at is not None:
            if self.completed_at < self.started_at:
                raise ValueError("completed_at must not precede started_at")

    @property
    def is_active(self) -> bool:
        return self.status != OrderItemStatus.CANCELLED

    @property
    def on_board(self) -> bool:
        return self.status not in (OrderItemStatus.SERVED, OrderItemStatus.CANCELLED)

    def transition(self, target: OrderItemStatus, now: datetime) -> OrderItem:
        ensure_item_transition(self.status, target)
        started_at = self.started_at
        completed_at = self.completed_at
        if target == OrderItemStatus.PREPARING and started_at is None:
            started_at = now
        if target == OrderItemStatus.READY and completed_at is None:
            completed_at = now
        return replace(
            self,
            status=target,
            updated_at=now,
            started_at=started_at,
            completed_at=completed_at,
        )


def create_placed_order(
    order_id: OrderId,
    restaurant_id: RestaurantId,
    table_id: TableId | None,
    staff_id: StaffId,
    serve_policy: ServePolicy,
    now: datetime,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    note: str | None = None,
) -> Order:
    return Order(
        order_id=order_id,
        restaurant_id=restaurant_id,
        table_id=table_id,
        staff_id=staff_id,
        status=OrderStatus.PLACED,
        serve_policy=serve_policy,
        created_at=now,
        updated_at=now,
        customer_name=customer_name,
        customer_phone=customer_phone,
        note=note,
    )


def create_pending_item(
    item_id: OrderItemId,
    order: Order,
    menu_item_id: MenuItemId,
    quantity: int,
    now: datetime,
    note: str | None = None,
) -> OrderItem:
    order.ensure_accepts_items()
    return OrderItem(
        item_id=item_id,
        order_id=order.order_id,
        menu_item_id=menu_item_id,
        quantity=quantity,
        status=OrderItemStatus.PENDING,
        created_at=now,
        updated_at=now,
        note=note,
    )
