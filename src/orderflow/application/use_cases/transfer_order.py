from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from orderflow.application.authorization import Capability, require, require_membership
from orderflow.application.dto.requests import TransferOrderRequest
from orderflow.application.dto.responses import OrderResponse
from orderflow.application.errors import OrderNotFoundError, OrderNotModifiableError
from orderflow.application.mappers.event_envelope import TraceContext, serialize_order_event
from orderflow.application.mappers.order_mapper import to_order_response
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.application.ports.services import Authorizer, EventPublisher
from orderflow.application.use_cases.inputs import require_staff_of, require_text
from orderflow.application.use_cases.order_sync import append_event, publish_all, run_in_unit_of_work
from orderflow.domain.common.ids import OrderId, StaffId
from orderflow.domain.order.entities import Order, OrderItem, OrderLockedError
from orderflow.domain.order.events import EntityType, EventType


class TransferOrder:
    """Hands an open order over to another waiter."""

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
        request_dto: TransferOrderRequest,
        actor_id: StaffId,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        require(self._authorizer, actor_id, Capability.ORDER_TRANSFER)
        new_staff_id = StaffId(require_text(request_dto.staff_id, "staffId"))
        now = datetime.now(timezone.utc)

        def apply(uow: UnitOfWork) -> tuple[Order, list[OrderItem], bool]:
            order = uow.orders.get_for_update(order_id)
            if order is None:
                raise OrderNotFoundError(f"order {order_id} not found", order_id=str(order_id))
            require_membership(self._authorizer, actor_id, order.restaurant_id)
            require_staff_of(self._authorizer, new_staff_id, order.restaurant_id)
            try:
                order.ensure_open()
            except OrderLockedError as exc:
                raise OrderNotModifiableError(
                    str(exc),
                    order_id=str(order_id),
                    current=order.status.value,
                ) from exc

            items = uow.items.list_for_order(order_id)
            if order.staff_id == new_staff_id:
                return order, items, False

            persisted = uow.orders.save_with_version(
                order.with_staff(new_staff_id, now),
                expected_version=order.version,
            )
            append_event(
                uow,
                restaurant_id=order.restaurant_id,
                entity_type=EntityType.ORDER,
                entity_id=str(order.order_id),
                event_type=EventType.WAITER_TRANSFERRED,
                old_value=str(order.staff_id),
                new_value=str(new_staff_id),
                actor_id=actor_id,
                now=now,
                order_id=order.order_id,
            )
            return persisted, items, True

        order, items, transferred = run_in_unit_of_work(
            self._uow_factory,
            apply,
            operation_name="transfer_order",
        )

        if transferred:
            message = serialize_order_event(
                event_type="order.transferred",
                occurred_at=now,
                order=order,
                items=items,
                trace=trace_ctx,
            )
            publish_all(self._publisher, order.restaurant_id, [message])
        return to_order_response(order, items)
