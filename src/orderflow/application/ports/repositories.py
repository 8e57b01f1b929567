from __future__ import annotations

from collections.abc import Iterable
from types import TracebackType
from typing import Protocol

from orderflow.domain.common.ids import (
    MenuItemId,
    OrderId,
    OrderItemId,
    RestaurantId,
    StaffId,
    TableId,
)
from orderflow.domain.menu.entities import CatalogItem
from orderflow.domain.order.entities import Order, OrderItem
from orderflow.domain.order.events import Event
from orderflow.domain.order.transitions import OrderItemStatus
from orderflow.domain.table.entities import Table, TableStatus


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def get_for_update(self, order_id: OrderId) -> Order | None: ...

    def save_with_version(self, order: Order, expected_version: int) -> Order: ...

    def find_live_for_table(self, table_id: TableId) -> Order | None: ...

    def list_active(self, restaurant_id: RestaurantId) -> list[Order]: ...

    def list_for_table(self, restaurant_id: RestaurantId, table_id: TableId) -> list[Order]: ...

    def list_for_kitchen(self, restaurant_id: RestaurantId) -> list[Order]: ...


class OrderItemRepository(Protocol):
    def add(self, item: OrderItem) -> None: ...

    def get(self, item_id: OrderItemId) -> OrderItem | None: ...

    def list_for_order(self, order_id: OrderId) -> list[OrderItem]: ...

    def list_for_orders(self, order_ids: Iterable[OrderId]) -> dict[OrderId, list[OrderItem]]: ...

    def save_with_status(self, item: OrderItem, expected_status: OrderItemStatus) -> None: ...

    def count_unserved_for_table(self, table_id: TableId) -> int: ...


class TableRepository(Protocol):
    def get(self, table_id: TableId, restaurant_id: RestaurantId) -> Table | None: ...

    def list_for_restaurant(self, restaurant_id: RestaurantId) -> list[Table]: ...

    def save_with_status(self, table: Table, expected_status: TableStatus) -> bool: ...


class EventLog(Protocol):
    def append(self, event: Event) -> None: ...

    def list_for_order(self, order_id: OrderId) -> list[Event]: ...


class MenuCatalog(Protocol):
    def get_items(
        self,
        restaurant_id: RestaurantId,
        item_ids: Iterable[MenuItemId],
    ) -> dict[MenuItemId, CatalogItem]: ...


class StaffDirectory(Protocol):
    def get_role(self, staff_id: StaffId) -> str | None: ...

    def get_restaurant(self, staff_id: StaffId) -> RestaurantId | None: ...

    def get_role_capabilities(self, role: str) -> set[str]: ...


class UnitOfWork(Protocol):
    """One transaction over every repository the lifecycle touches.

    Leaving the ``with`` block without calling ``commit`` rolls everything back.
    """

    orders: OrderRepository
    items: OrderItemRepository
    tables: TableRepository
    events: EventLog
    catalog: MenuCatalog

    def __enter__(self) -> UnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    def commit(self) -> None: ...


class OptimisticConcurrencyError(Exception):
    pass
