from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from orderflow.application.authorization import Capability, require, require_membership
from orderflow.application.dto.requests import AddOrderItemRequest
from orderflow.application.dto.responses import OrderResponse
from orderflow.application.errors import OrderNotFoundError
from orderflow.application.mappers.event_envelope import TraceContext, serialize_order_event
from orderflow.application.mappers.order_mapper import to_order_response
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.application.ports.services import Authorizer, EventPublisher
from orderflow.application.use_cases.inputs import require_text
from orderflow.application.use_cases.item_ledger import OrderItemLedger
from orderflow.application.use_cases.order_sync import (
    SyncResult,
    append_event,
    publish_all,
    run_in_unit_of_work,
    sync_messages,
    sync_order_status,
)
from orderflow.domain.common.ids import MenuItemId, OrderId, StaffId
from orderflow.domain.order.events import EntityType, EventType


class AddOrderItem:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        authorizer: Authorizer,
        publisher: EventPublisher,
    ) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer
        self._publisher = publisher

    def execute(
        self,
        order_id: OrderId,
        request_dto: AddOrderItemRequest,
        actor_id: StaffId,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        require(self._authorizer, actor_id, Capability.ORDER_UPDATE)
        menu_item_id = MenuItemId(require_text(request_dto.menu_item_id, "menuItemId"))
        now = datetime.now(timezone.utc)

        def apply(uow: UnitOfWork) -> SyncResult:
            order = uow.orders.get_for_update(order_id)
            if order is None:
                raise OrderNotFoundError(f"order {order_id} not found", order_id=str(order_id))
            require_membership(self._authorizer, actor_id, order.restaurant_id)

            item = OrderItemLedger(uow).add_item(
                order,
                menu_item_id=menu_item_id,
                quantity=request_dto.quantity,
                now=now,
                note=request_dto.note,
            )
            append_event(
                uow,
                restaurant_id=order.restaurant_id,
                entity_type=EntityType.ORDER_ITEM,
                entity_id=str(item.item_id),
                event_type=EventType.ITEM_ADDED,
                old_value=None,
                new_value=item.status.value,
                actor_id=actor_id,
                now=now,
                order_id=order.order_id,
            )
            return sync_order_status(uow, order, now)

        sync = run_in_unit_of_work(self._uow_factory, apply, operation_name="add_item")

        messages = [
            serialize_order_event(
                event_type="order.item_added",
                occurred_at=now,
                order=sync.order,
                items=sync.items,
                trace=trace_ctx,
            ),
            *sync_messages(sync, trace_ctx, now),
        ]
        publish_all(self._publisher, sync.order.restaurant_id, messages)
        return to_order_response(sync.order, sync.items)
