from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from uuid import uuid4

from orderflow.application.authorization import Capability, require
from orderflow.application.dto.requests import CreateOrderRequest
from orderflow.application.dto.responses import OrderResponse
from orderflow.application.errors import TableNotFoundError, TableNotFreeError
from orderflow.application.mappers.event_envelope import (
    TraceContext,
    serialize_order_event,
    serialize_table_event,
)
from orderflow.application.mappers.order_mapper import to_order_response
from orderflow.application.metrics.order_lifecycle import record_order_created
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.application.ports.services import Authorizer, EventPublisher
from orderflow.application.use_cases.inputs import parse_enum, require_staff_of, require_text
from orderflow.application.use_cases.order_sync import append_event, publish_all, run_in_unit_of_work
from orderflow.domain.common.ids import OrderId, RestaurantId, StaffId, TableId
from orderflow.domain.order.entities import Order, ServePolicy, create_placed_order
from orderflow.domain.order.events import EntityType, EventType
from orderflow.domain.table.entities import Table, TableUnavailableError


class CreateOrder:
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
        restaurant_id: RestaurantId,
        request_dto: CreateOrderRequest,
        actor_id: StaffId,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        require(self._authorizer, actor_id, Capability.ORDER_CREATE, restaurant_id)
        staff_id = StaffId(require_text(request_dto.staff_id, "staffId"))
        require_staff_of(self._authorizer, staff_id, restaurant_id)
        serve_policy = parse_enum(ServePolicy, request_dto.serve_policy, "servePolicy")
        table_id = TableId(request_dto.table_id) if request_dto.table_id else None
        now = datetime.now(timezone.utc)

        def apply(uow: UnitOfWork) -> tuple[Order, Table | None]:
            occupied = None
            if table_id is not None:
                occupied = self._occupy_table(uow, restaurant_id, table_id, now)

            order = create_placed_order(
                order_id=OrderId(f"ord_{uuid4().hex[:12]}"),
                restaurant_id=restaurant_id,
                table_id=table_id,
                staff_id=staff_id,
                serve_policy=serve_policy,
                now=now,
                customer_name=request_dto.customer_name,
                customer_phone=request_dto.customer_phone,
                note=request_dto.note,
            )
            uow.orders.add(order)
            append_event(
                uow,
                restaurant_id=restaurant_id,
                entity_type=EntityType.ORDER,
                entity_id=str(order.order_id),
                event_type=EventType.CREATED,
                old_value=None,
                new_value=order.status.value,
                actor_id=actor_id,
                now=now,
                order_id=order.order_id,
            )
            if occupied is not None:
                append_event(
                    uow,
                    restaurant_id=restaurant_id,
                    entity_type=EntityType.TABLE,
                    entity_id=str(occupied.table_id),
                    event_type=EventType.TABLE_STATUS_CHANGED,
                    old_value="FREE",
                    new_value=occupied.status.value,
                    actor_id=actor_id,
                    now=now,
                    order_id=order.order_id,
                )
            return order, occupied

        order, occupied = run_in_unit_of_work(
            self._uow_factory,
            apply,
            operation_name="create_order",
        )

        record_order_created(order)
        messages = [
            serialize_order_event(
                event_type="order.created",
                occurred_at=now,
                order=order,
                items=[],
                trace=trace_ctx,
            )
        ]
        if occupied is not None:
            messages.append(
                serialize_table_event(
                    event_type="table.status_changed",
                    occurred_at=now,
                    table=occupied,
                    trace=trace_ctx,
                )
            )
        publish_all(self._publisher, restaurant_id, messages)
        return to_order_response(order)

    @staticmethod
    def _occupy_table(
        uow: UnitOfWork,
        restaurant_id: RestaurantId,
        table_id: TableId,
        now: datetime,
    ) -> Table:
        table = uow.tables.get(table_id=table_id, restaurant_id=restaurant_id)
        if table is None:
            raise TableNotFoundError(
                f"table not found for restaurant_id={restaurant_id}, table_id={table_id}",
                table_id=str(table_id),
            )
        try:
            occupied = table.occupy(now)
        except TableUnavailableError as exc:
            raise TableNotFreeError(
                str(exc),
                table_id=str(table_id),
                current=exc.status.value,
            ) from exc

        live = uow.orders.find_live_for_table(table_id)
        if live is not None:
            raise TableNotFreeError(
                f"table {table_id} already hosts order {live.order_id}",
                table_id=str(table_id),
                order_id=str(live.order_id),
            )

        # The guard on the FREE status makes concurrent creators race here; losers never retry.
        if not uow.tables.save_with_status(occupied, expected_status=table.status):
            raise TableNotFreeError(
                f"table {table_id} was taken concurrently",
                table_id=str(table_id),
            )
        return occupied
