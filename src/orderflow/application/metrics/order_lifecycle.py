from __future__ import annotations

from prometheus_client import Counter, Gauge

from orderflow.domain.kitchen.view import HeatLevel, KitchenView
from orderflow.domain.order.entities import Order
from orderflow.domain.order.transitions import OrderItemStatus, OrderStatus

ORDERS_CREATED_TOTAL = Counter(
    "orderflow_orders_created_total",
    "Total number of orders created.",
    ["restaurant_id", "kind"],
)

ITEM_TRANSITION_TOTAL = Counter(
    "orderflow_item_transition_total",
    "Total number of order item status transitions.",
    ["from", "to"],
)

ORDER_STATUS_DERIVED_TOTAL = Counter(
    "orderflow_order_status_derived_total",
    "Total number of derived order status changes.",
    ["from", "to"],
)

ORDER_MANUAL_TRANSITION_TOTAL = Counter(
    "orderflow_order_manual_transition_total",
    "Total number of manual order status changes.",
    ["from", "to"],
)

TABLES_RELEASED_TOTAL = Counter(
    "orderflow_tables_released_total",
    "Total number of tables released back to FREE.",
    ["restaurant_id", "reason"],
)

OPTIMISTIC_RETRY_TOTAL = Counter(
    "orderflow_optimistic_retry_total",
    "Total number of retries after an optimistic concurrency conflict.",
    ["operation"],
)

KITCHEN_BOARD_ORDERS = Gauge(
    "orderflow_kitchen_board_orders",
    "Orders currently shown on the kitchen board by heat level.",
    ["restaurant_id", "heat"],
)


def record_order_created(order: Order) -> None:
    ORDERS_CREATED_TOTAL.labels(
        restaurant_id=str(order.restaurant_id),
        kind="takeaway" if order.is_takeaway else "table",
    ).inc()


def record_item_transition(from_status: OrderItemStatus, to_status: OrderItemStatus) -> None:
    ITEM_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_status_derived(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_STATUS_DERIVED_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_manual_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_MANUAL_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_table_released(restaurant_id: str, reason: str) -> None:
    TABLES_RELEASED_TOTAL.labels(restaurant_id=restaurant_id, reason=reason).inc()


def record_optimistic_retry(operation: str) -> None:
    OPTIMISTIC_RETRY_TOTAL.labels(operation=operation).inc()


def record_kitchen_board(view: KitchenView) -> None:
    counts = {heat: 0 for heat in HeatLevel}
    for card in view.orders:
        counts[card.heat] += 1
    for heat, size in counts.items():
        KITCHEN_BOARD_ORDERS.labels(restaurant_id=str(view.restaurant_id), heat=heat.value).set(size)
