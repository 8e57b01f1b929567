from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from orderflow.application.authorization import Capability, require, require_membership
from orderflow.application.dto.responses import OrderResponse
from orderflow.application.errors import InvalidTransitionError, OrderNotFoundError
from orderflow.application.mappers.event_envelope import (
    TraceContext,
    serialize_order_event,
    serialize_table_event,
)
from orderflow.application.mappers.order_mapper import to_order_response
from orderflow.application.metrics.order_lifecycle import record_manual_transition
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.application.ports.services import Authorizer, EventPublisher
from orderflow.application.use_cases.inputs import parse_enum
from orderflow.application.use_cases.item_ledger import OrderItemLedger
from orderflow.application.use_cases.order_sync import (
    append_event,
    publish_all,
    release_table_if_clear,
    run_in_unit_of_work,
)
from orderflow.domain.common.ids import OrderId, StaffId
from orderflow.domain.order.entities import Order, OrderItem
from orderflow.domain.order.events import EntityType, EventType
from orderflow.domain.order.transitions import (
    TERMINAL_ITEM_STATUSES,
    OrderItemStatus,
    OrderStatus,
    StatusTransitionError,
    ensure_order_transition,
)
from orderflow.domain.table.entities import Table

_COMPLETABLE_ITEM_STATUSES = frozenset({OrderItemStatus.READY, OrderItemStatus.SERVED})


@dataclass(frozen=True)
class _ManualChange:
    order: Order
    items: list[OrderItem]
    previous_status: OrderStatus
    released_table: Table | None


class ChangeOrderStatus:
    """Manual order transitions the item-driven derivation cannot reach.

    ``CANCELLED`` voids every item still in flight; ``COMPLETED`` serves the
    READY items and requires nothing else to be outstanding.
    """

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
        new_status: str,
        actor_id: StaffId,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        target = parse_enum(OrderStatus, new_status, "status")
        capability = Capability.ORDER_VOID if target == OrderStatus.CANCELLED else Capability.ORDER_UPDATE
        require(self._authorizer, actor_id, capability)
        now = datetime.now(timezone.utc)

        def apply(uow: UnitOfWork) -> _ManualChange:
            order = uow.orders.get_for_update(order_id)
            if order is None:
                raise OrderNotFoundError(f"order {order_id} not found", order_id=str(order_id))
            require_membership(self._authorizer, actor_id, order.restaurant_id)
            try:
                ensure_order_transition(order.status, target)
            except StatusTransitionError as exc:
                raise InvalidTransitionError(
                    str(exc),
                    kind="order",
                    order_id=str(order_id),
                    current=exc.current,
                    attempted=exc.attempted,
                ) from exc

            items = uow.items.list_for_order(order_id)
            if target == OrderStatus.COMPLETED:
                outstanding = [
                    item
                    for item in items
                    if item.is_active and item.status not in _COMPLETABLE_ITEM_STATUSES
                ]
                if outstanding:
                    raise InvalidTransitionError(
                        f"order {order_id} still has items in preparation",
                        kind="order",
                        order_id=str(order_id),
                        current=order.status.value,
                        attempted=target.value,
                        outstanding_item_ids=[str(item.item_id) for item in outstanding],
                    )
                closing = {OrderItemStatus.READY: OrderItemStatus.SERVED}
            else:
                closing = {
                    status: OrderItemStatus.CANCELLED
                    for status in OrderItemStatus
                    if status not in TERMINAL_ITEM_STATUSES
                }

            ledger = OrderItemLedger(uow)
            closed_items: list[OrderItem] = []
            for item in items:
                next_status = closing.get(item.status)
                if next_status is None:
                    closed_items.append(item)
                    continue
                updated = ledger.transition_item(item, next_status, now)
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
                closed_items.append(updated)

            persisted = uow.orders.save_with_version(
                order.with_status(target, now),
                expected_version=order.version,
            )
            append_event(
                uow,
                restaurant_id=order.restaurant_id,
                entity_type=EntityType.ORDER,
                entity_id=str(order.order_id),
                event_type=EventType.STATUS_CHANGED,
                old_value=order.status.value,
                new_value=target.value,
                actor_id=actor_id,
                now=now,
                order_id=order.order_id,
            )
            released = release_table_if_clear(uow, persisted, actor_id=actor_id, now=now)
            return _ManualChange(
                order=persisted,
                items=closed_items,
                previous_status=order.status,
                released_table=released,
            )

        change = run_in_unit_of_work(
            self._uow_factory,
            apply,
            operation_name="change_order_status",
        )

        record_manual_transition(change.previous_status, change.order.status)
        messages = [
            serialize_order_event(
                event_type="order.status_changed",
                occurred_at=now,
                order=change.order,
                items=change.items,
                trace=trace_ctx,
            )
        ]
        if change.released_table is not None:
            messages.append(
                serialize_table_event(
                    event_type="table.status_changed",
                    occurred_at=now,
                    table=change.released_table,
                    trace=trace_ctx,
                )
            )
        publish_all(self._publisher, change.order.restaurant_id, messages)
        return to_order_response(change.order, change.items)
