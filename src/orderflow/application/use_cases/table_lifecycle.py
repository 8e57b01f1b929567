from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from orderflow.application.authorization import Capability, require
from orderflow.application.dto.responses import TableResponse, TablesResponse
from orderflow.application.errors import TableNotFoundError, TableNotFreeError
from orderflow.application.mappers.event_envelope import TraceContext, serialize_table_event
from orderflow.application.mappers.table_mapper import to_table_response, to_tables_response
from orderflow.application.ports.repositories import OptimisticConcurrencyError, UnitOfWork
from orderflow.application.ports.services import Authorizer, EventPublisher
from orderflow.application.use_cases.inputs import parse_enum
from orderflow.application.use_cases.order_sync import append_event, publish_all, run_in_unit_of_work
from orderflow.domain.common.ids import RestaurantId, StaffId, TableId
from orderflow.domain.order.events import EntityType, EventType
from orderflow.domain.table.entities import Table, TableStatus


def _table_not_found(restaurant_id: RestaurantId, table_id: TableId) -> TableNotFoundError:
    return TableNotFoundError(
        f"table not found for restaurant_id={restaurant_id}, table_id={table_id}",
        table_id=str(table_id),
    )


class GetTable:
    def __init__(self, uow_factory: Callable[[], UnitOfWork], authorizer: Authorizer) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer

    def execute(
        self,
        restaurant_id: RestaurantId,
        table_id: TableId,
        actor_id: StaffId,
    ) -> TableResponse:
        require(self._authorizer, actor_id, Capability.TABLE_VIEW, restaurant_id)
        with self._uow_factory() as uow:
            table = uow.tables.get(table_id=table_id, restaurant_id=restaurant_id)
        if table is None:
            raise _table_not_found(restaurant_id, table_id)
        return to_table_response(table)


class ListTables:
    def __init__(self, uow_factory: Callable[[], UnitOfWork], authorizer: Authorizer) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer

    def execute(self, restaurant_id: RestaurantId, actor_id: StaffId) -> TablesResponse:
        require(self._authorizer, actor_id, Capability.TABLE_VIEW, restaurant_id)
        with self._uow_factory() as uow:
            tables = uow.tables.list_for_restaurant(restaurant_id)
        return to_tables_response(tables)


class ChangeTableStatus:
    """Manual table management: reserving, freeing or seating a walk-in."""

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
        table_id: TableId,
        new_status: str,
        actor_id: StaffId,
        trace_ctx: TraceContext,
    ) -> TableResponse:
        require(self._authorizer, actor_id, Capability.TABLE_UPDATE_STATUS, restaurant_id)
        target = parse_enum(TableStatus, new_status, "status")
        now = datetime.now(timezone.utc)

        def apply(uow: UnitOfWork) -> tuple[Table, bool]:
            table = uow.tables.get(table_id=table_id, restaurant_id=restaurant_id)
            if table is None:
                raise _table_not_found(restaurant_id, table_id)
            if table.status == target:
                return table, False

            if target != TableStatus.OCCUPIED:
                live = uow.orders.find_live_for_table(table_id)
                if live is not None:
                    raise TableNotFreeError(
                        f"table {table_id} hosts open order {live.order_id}",
                        table_id=str(table_id),
                        order_id=str(live.order_id),
                        current=table.status.value,
                        attempted=target.value,
                    )

            updated = table.with_status(target, now)
            if not uow.tables.save_with_status(updated, expected_status=table.status):
                raise OptimisticConcurrencyError(f"table {table_id} status changed concurrently")
            append_event(
                uow,
                restaurant_id=restaurant_id,
                entity_type=EntityType.TABLE,
                entity_id=str(table_id),
                event_type=EventType.TABLE_STATUS_CHANGED,
                old_value=table.status.value,
                new_value=updated.status.value,
                actor_id=actor_id,
                now=now,
            )
            return updated, True

        table, changed = run_in_unit_of_work(
            self._uow_factory,
            apply,
            operation_name="change_table_status",
        )

        if changed:
            message = serialize_table_event(
                event_type="table.status_changed",
                occurred_at=now,
                table=table,
                trace=trace_ctx,
            )
            publish_all(self._publisher, restaurant_id, [message])
        return to_table_response(table)
