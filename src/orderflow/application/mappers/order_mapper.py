from __future__ import annotations

from collections.abc import Iterable

from orderflow.application.dto.responses import OrderItemResponse, OrderResponse, OrdersResponse
from orderflow.domain.order.entities import Order, OrderItem


def to_order_item_response(item: OrderItem) -> OrderItemResponse:
    return OrderItemResponse(
        itemId=str(item.item_id),
        orderId=str(item.order_id),
        menuItemId=str(item.menu_item_id),
        quantity=item.quantity,
        status=item.status.value,
        note=item.note,
        createdAt=item.created_at,
        updatedAt=item.updated_at,
        startedAt=item.started_at,
        completedAt=item.completed_at,
    )


def to_order_response(order: Order, items: Iterable[OrderItem] = ()) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        restaurantId=str(order.restaurant_id),
        tableId=str(order.table_id) if order.table_id is not None else None,
        staffId=str(order.staff_id),
        status=order.status.value,
        servePolicy=order.serve_policy.value,
        customerName=order.customer_name,
        customerPhone=order.customer_phone,
        note=order.note,
        createdAt=order.created_at,
        updatedAt=order.updated_at,
        version=order.version,
        items=[to_order_item_response(item) for item in items],
    )


def to_orders_response(orders: Iterable[tuple[Order, list[OrderItem]]]) -> OrdersResponse:
    return OrdersResponse(orders=[to_order_response(order, items) for order, items in orders])
