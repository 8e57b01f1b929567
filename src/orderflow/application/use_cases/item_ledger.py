from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from orderflow.application.errors import (
    InvalidInputError,
    InvalidTransitionError,
    MenuItemUnavailableError,
    OrderNotModifiableError,
)
from orderflow.application.metrics.order_lifecycle import record_item_transition
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.domain.common.ids import MenuItemId, OrderItemId
from orderflow.domain.order.entities import Order, OrderItem, OrderLockedError, create_pending_item
from orderflow.domain.order.transitions import OrderItemStatus, StatusTransitionError


class OrderItemLedger:
    """Item creation and item status moves inside an open unit of work."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def add_item(
        self,
        order: Order,
        menu_item_id: MenuItemId,
        quantity: int,
        now: datetime,
        note: str | None = None,
    ) -> OrderItem:
        try:
            order.ensure_accepts_items()
        except OrderLockedError as exc:
            raise OrderNotModifiableError(
                str(exc),
                order_id=str(order.order_id),
                current=order.status.value,
            ) from exc
        if quantity < 1:
            raise InvalidInputError(
                "quantity must be >= 1",
                field="quantity",
                attempted=quantity,
            )

        catalog = self._uow.catalog.get_items(order.restaurant_id, [menu_item_id])
        menu_item = catalog.get(menu_item_id)
        if menu_item is None:
            raise MenuItemUnavailableError(
                f"menu item {menu_item_id} does not exist",
                menu_item_id=str(menu_item_id),
            )
        if not menu_item.is_available:
            raise MenuItemUnavailableError(
                f"menu item {menu_item_id} is unavailable",
                menu_item_id=str(menu_item_id),
            )

        item = create_pending_item(
            item_id=OrderItemId(f"itm_{uuid4().hex[:12]}"),
            order=order,
            menu_item_id=menu_item_id,
            quantity=quantity,
            now=now,
            note=note,
        )

        self._uow.items.add(item)
        return item

    def transition_item(
        self,
        item: OrderItem,
        new_status: OrderItemStatus,
        now: datetime,
        idempotent: bool = False,
    ) -> OrderItem:
        if idempotent and new_status == item.status:
            return item

        try:
            updated = item.transition(new_status, now)
        except StatusTransitionError as exc:
            raise InvalidTransitionError(
                str(exc),
                kind="item",
                item_id=str(item.item_id),
                current=exc.current,
                attempted=exc.attempted,
            ) from exc

        self._uow.items.save_with_status(updated, expected_status=item.status)
        record_item_transition(item.status, updated.status)
        return updated
