"""Shared steps of every order-mutating use case.

``sync_order_status`` is the only place an order's stored status is rewritten
from its items, and ``release_table_if_clear`` the only place a table is
handed back after its order finishes. Both run inside the caller's unit of
work so the item change, the derived status and the table flip commit
together.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar
from uuid import uuid4

from orderflow.application.errors import OrderConflictError
from orderflow.application.mappers.event_envelope import (
    TraceContext,
    channel_for,
    serialize_order_event,
    serialize_table_event,
)
from orderflow.application.metrics.order_lifecycle import (
    record_optimistic_retry,
    record_status_derived,
    record_table_released,
)
from orderflow.application.ports.repositories import OptimisticConcurrencyError, UnitOfWork
from orderflow.application.ports.services import EventPublisher
from orderflow.domain.common.ids import SYSTEM_ACTOR, EventId, OrderId, RestaurantId, StaffId
from orderflow.domain.order.derivation import derive_order_status
from orderflow.domain.order.entities import Order, OrderItem
from orderflow.domain.order.events import EntityType, Event, EventType
from orderflow.domain.order.transitions import TERMINAL_ORDER_STATUSES, OrderStatus
from orderflow.domain.table.entities import Table, TableStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SyncResult:
    order: Order
    items: list[OrderItem]
    previous_status: OrderStatus
    released_table: Table | None = None

    @property
    def status_changed(self) -> bool:
        return self.order.status != self.previous_status


def append_event(
    uow: UnitOfWork,
    *,
    restaurant_id: RestaurantId,
    entity_type: EntityType,
    entity_id: str,
    event_type: EventType,
    old_value: str | None,
    new_value: str | None,
    actor_id: StaffId,
    now: datetime,
    order_id: OrderId | None = None,
) -> Event:
    event = Event(
        event_id=EventId(f"evt_{uuid4().hex[:12]}"),
        restaurant_id=restaurant_id,
        entity_type=entity_type,
        entity_id=entity_id,
        event_type=event_type,
        old_value=old_value,
        new_value=new_value,
        actor_id=actor_id,
        occurred_at=now,
        order_id=order_id,
    )
    uow.events.append(event)
    return event


def release_table_if_clear(
    uow: UnitOfWork,
    order: Order,
    actor_id: StaffId,
    now: datetime,
) -> Table | None:
    if order.table_id is None:
        return None
    if uow.items.count_unserved_for_table(order.table_id) > 0:
        return None

    table = uow.tables.get(table_id=order.table_id, restaurant_id=order.restaurant_id)
    if table is None or table.status == TableStatus.FREE:
        return None

    released = table.release(now)
    if not uow.tables.save_with_status(released, expected_status=table.status):
        raise OptimisticConcurrencyError(f"table {table.table_id} status changed concurrently")

    append_event(
        uow,
        restaurant_id=order.restaurant_id,
        entity_type=EntityType.TABLE,
        entity_id=str(table.table_id),
        event_type=EventType.TABLE_STATUS_CHANGED,
        old_value=table.status.value,
        new_value=released.status.value,
        actor_id=actor_id,
        now=now,
        order_id=order.order_id,
    )
    record_table_released(str(order.restaurant_id), reason=order.status.value.lower())
    logger.info(
        "table_released",
        extra={
            "restaurant_id": str(order.restaurant_id),
            "table_id": str(table.table_id),
            "order_id": str(order.order_id),
        },
    )
    return released


def sync_order_status(
    uow: UnitOfWork,
    order: Order,
    now: datetime,
    items_changed: bool = True,
) -> SyncResult:
    """Re-derive ``order`` from its items and bump its version.

    Any item write advances ``orders.version`` even when the derived status
    stays put, so two writers deriving from different item snapshots of the
    same order cannot both commit. Only an untouched order is left alone.
    """
    items = uow.items.list_for_order(order.order_id)
    derived = derive_order_status(order.serve_policy, (item.status for item in items))
    if derived == order.status and not items_changed:
        return SyncResult(order=order, items=items, previous_status=order.status)

    persisted = uow.orders.save_with_version(
        order.with_status(derived, now),
        expected_version=order.version,
    )
    if derived == order.status:
        return SyncResult(order=persisted, items=items, previous_status=order.status)

    append_event(
        uow,
        restaurant_id=order.restaurant_id,
        entity_type=EntityType.ORDER,
        entity_id=str(order.order_id),
        event_type=EventType.ORDER_STATUS_DERIVED,
        old_value=order.status.value,
        new_value=derived.value,
        actor_id=SYSTEM_ACTOR,
        now=now,
        order_id=order.order_id,
    )
    record_status_derived(order.status, derived)
    logger.info(
        "order_status_derived",
        extra={
            "order_id": str(order.order_id),
            "from_status": order.status.value,
            "to_status": derived.value,
        },
    )

    released = None
    if derived in TERMINAL_ORDER_STATUSES:
        released = release_table_if_clear(uow, persisted, actor_id=SYSTEM_ACTOR, now=now)

    return SyncResult(
        order=persisted,
        items=items,
        previous_status=order.status,
        released_table=released,
    )


def max_sync_attempts() -> int:
    return max(int(os.getenv("ORDER_SYNC_MAX_ATTEMPTS", "3")), 1)


def run_in_unit_of_work(
    uow_factory: Callable[[], UnitOfWork],
    operation: Callable[[UnitOfWork], T],
    *,
    operation_name: str,
) -> T:
    """Run ``operation`` in a fresh unit of work, retrying lost compare-and-sets."""
    attempts = max_sync_attempts()
    attempt = 1
    while True:
        try:
            with uow_factory() as uow:
                result = operation(uow)
                uow.commit()
                return result
        except OptimisticConcurrencyError as exc:
            if attempt >= attempts:
                raise OrderConflictError(
                    f"{operation_name} lost a concurrent update {attempts} times",
                    operation=operation_name,
                    attempts=attempts,
                ) from exc
            record_optimistic_retry(operation_name)
            logger.info(
                "optimistic_retry",
                extra={"operation": operation_name, "attempt": attempt},
            )
            attempt += 1


def publish_all(
    publisher: EventPublisher,
    restaurant_id: RestaurantId,
    messages: Iterable[str],
) -> None:
    channel = channel_for(str(restaurant_id))
    for message in messages:
        try:
            publisher.publish(channel=channel, message=message)
        except Exception:
            logger.warning("event_publish_failed", extra={"channel": channel})


def sync_messages(sync: SyncResult, trace_ctx: TraceContext, now: datetime) -> list[str]:
    messages: list[str] = []
    if sync.status_changed:
        messages.append(
            serialize_order_event(
                event_type="order.status_derived",
                occurred_at=now,
                order=sync.order,
                items=sync.items,
                trace=trace_ctx,
            )
        )
    if sync.released_table is not None:
        messages.append(
            serialize_table_event(
                event_type="table.status_changed",
                occurred_at=now,
                table=sync.released_table,
                trace=trace_ctx,
            )
        )
    return messages
