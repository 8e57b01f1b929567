from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from orderflow.application.authorization import Capability, require, require_membership
from orderflow.application.dto.responses import OrderResponse
from orderflow.application.errors import (
    OrderItemNotFoundError,
    OrderNotFoundError,
    OrderNotModifiableError,
)
from orderflow.application.mappers.event_envelope import TraceContext, serialize_order_event
from orderflow.application.mappers.order_mapper import to_order_response
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.application.ports.services import Authorizer, EventPublisher
from orderflow.application.use_cases.inputs import parse_enum
from orderflow.application.use_cases.item_ledger import OrderItemLedger
from orderflow.application.use_cases.order_sync import (
    SyncResult,
    append_event,
    publish_all,
    run_in_unit_of_work,
    sync_messages,
    sync_order_status,
)
from orderflow.domain.common.ids import OrderItemId, StaffId
from orderflow.domain.order.entities import OrderLockedError
from orderflow.domain.order.events import EntityType, EventType
from orderflow.domain.order.transitions import OrderItemStatus


class ChangeItemStatus:
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
        item_id: OrderItemId,
        new_status: str,
        actor_id: StaffId,
        trace_ctx: TraceContext,
        idempotent: bool = False,
    ) -> OrderResponse:
        require(self._authorizer, actor_id, Capability.ORDER_UPDATE)
        target = parse_enum(OrderItemStatus, new_status, "status")
        now = datetime.now(timezone.utc)
        changed = False

        def apply(uow: UnitOfWork) -> SyncResult:
            nonlocal changed
            item = uow.items.get(item_id)
            if item is None:
                raise OrderItemNotFoundError(
                    f"order item {item_id} not found",
                    item_id=str(item_id),
                )
            order = uow.orders.get_for_update(item.order_id)
            if order is None:
                raise OrderNotFoundError(
                    f"order {item.order_id} not found",
                    order_id=str(item.order_id),
                )
            require_membership(self._authorizer, actor_id, order.restaurant_id)
            try:
                order.ensure_open()
            except OrderLockedError as exc:
                raise OrderNotModifiableError(
                    str(exc),
                    order_id=str(order.order_id),
                    item_id=str(item_id),
                    current=order.status.value,
                ) from exc

            updated = OrderItemLedger(uow).transition_item(item, target, now, idempotent=idempotent)
            changed = updated is not item
            if changed:
                append_event(
                    uow,
                    restaurant_id=order.restaurant_id,
                    entity_type=EntityType.ORDER_ITEM,
                    entity_id=str(item.item_id),
                    event_type=EventType.ITEM_STATUS_CHANGED,
                    old_value=item.status.value,
                    new_value=updated.status.value,
                    actor_id=actor_id,
                    now=now,
                    order_id=order.order_id,
                )
            return sync_order_status(uow, order, now, items_changed=changed)

        sync = run_in_unit_of_work(self._uow_factory, apply, operation_name="change_item_status")

        if changed:
            messages = [
                serialize_order_event(
                    event_type="order.item_status_changed",
                    occurred_at=now,
                    order=sync.order,
                    items=sync.items,
                    trace=trace_ctx,
                ),
                *sync_messages(sync, trace_ctx, now),
            ]
            publish_all(self._publisher, sync.order.restaurant_id, messages)
        return to_order_response(sync.order, sync.items)
