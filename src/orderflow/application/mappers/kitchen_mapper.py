from __future__ import annotations

from orderflow.application.dto.responses import (
    KitchenColumnsResponse,
    KitchenItemResponse,
    KitchenOrderResponse,
    KitchenViewResponse,
)
from orderflow.domain.kitchen.view import KitchenColumn, KitchenOrderCard, KitchenView


def to_kitchen_order_response(card: KitchenOrderCard) -> KitchenOrderResponse:
    return KitchenOrderResponse(
        orderId=str(card.order_id),
        tableId=str(card.table_id) if card.table_id is not None else None,
        tableLabel=card.table_label,
        servePolicy=card.serve_policy.value,
        column=card.column.value,
        heat=card.heat.value,
        pulse=card.pulse,
        blocking=card.blocking,
        createdAt=card.created_at,
        lastProgressAt=card.last_progress_at,
        budgetSeconds=int(card.budget.total_seconds()),
        note=card.note,
        customerName=card.customer_name,
        items=[
            KitchenItemResponse(
                itemId=str(item.item_id),
                menuItemId=str(item.menu_item_id),
                name=item.name,
                quantity=item.quantity,
                status=item.status.value,
                note=item.note,
                prepTimeMinutes=item.prep_time_minutes,
                isBlocking=item.is_blocking,
                hint=item.hint.value,
            )
            for item in card.items
        ],
    )


def to_kitchen_view_response(view: KitchenView) -> KitchenViewResponse:
    def column(key: KitchenColumn) -> list[KitchenOrderResponse]:
        return [to_kitchen_order_response(card) for card in view.columns[key]]

    return KitchenViewResponse(
        restaurantId=str(view.restaurant_id),
        generatedAt=view.generated_at,
        columns=KitchenColumnsResponse(
            pending=column(KitchenColumn.PENDING),
            preparing=column(KitchenColumn.PREPARING),
            ready=column(KitchenColumn.READY),
        ),
    )
