from __future__ import annotations

from collections.abc import Iterable

from orderflow.domain.order.entities import ServePolicy
from orderflow.domain.order.transitions import OrderItemStatus, OrderStatus


def derive_order_status(
    serve_policy: ServePolicy,
    item_statuses: Iterable[OrderItemStatus],
) -> OrderStatus:
    """Aggregate status of an order from the statuses of all of its items.

    Cancelled items are ignored unless every item is cancelled. ``PARTIAL``
    orders become READY as soon as one active item is READY; ``ALL_AT_ONCE``
    orders only when every active item is.
    """
    statuses = list(item_statuses)
    active = [status for status in statuses if status != OrderItemStatus.CANCELLED]

    if statuses and not active:
        return OrderStatus.CANCELLED
    if not active:
        return OrderStatus.PLACED
    if all(status == OrderItemStatus.SERVED for status in active):
        return OrderStatus.COMPLETED

    any_ready = OrderItemStatus.READY in active
    any_preparing = OrderItemStatus.PREPARING in active

    if serve_policy == ServePolicy.ALL_AT_ONCE:
        if all(status == OrderItemStatus.READY for status in active):
            return OrderStatus.READY
        if any_preparing or any_ready:
            return OrderStatus.PREPARING
        return OrderStatus.PLACED

    if any_ready:
        return OrderStatus.READY
    if any_preparing:
        return OrderStatus.PREPARING
    return OrderStatus.PLACED
