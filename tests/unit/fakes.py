from __future__ import annotations

import sys
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from orderflow.application.ports.repositories import OptimisticConcurrencyError
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
from orderflow.domain.order.transitions import TERMINAL_ORDER_STATUSES, OrderItemStatus
from orderflow.domain.table.entities import Table, TableStatus

RESTAURANT_ID = RestaurantId("rst_001")


@dataclass
class InMemoryStore:
    orders: dict[OrderId, Order] = field(default_factory=dict)
    items: dict[OrderItemId, OrderItem] = field(default_factory=dict)
    tables: dict[TableId, Table] = field(default_factory=dict)
    events: list[Event] = field(default_factory=list)
    catalog: dict[MenuItemId, CatalogItem] = field(default_factory=dict)
    forced_order_conflicts: int = 0
    commits: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock)

    def add_table(self, table_id: str, label: str, status: TableStatus = TableStatus.FREE) -> Table:
        table = Table(
            table_id=TableId(table_id),
            restaurant_id=RESTAURANT_ID,
            label=label,
            status=status,
            updated_at=datetime.now(timezone.utc),
        )
        self.tables[table.table_id] = table
        return table

    def add_menu_item(
        self,
        item_id: str,
        name: str,
        prep_time_minutes: int | None,
        is_available: bool = True,
    ) -> CatalogItem:
        entry = CatalogItem(
            item_id=MenuItemId(item_id),
            restaurant_id=RESTAURANT_ID,
            name=name,
            prep_time_minutes=prep_time_minutes,
            is_available=is_available,
        )
        self.catalog[entry.item_id] = entry
        return entry


def seeded_store() -> InMemoryStore:
    store = InMemoryStore()
    store.add_table("tbl_001", "T1")
    store.add_table("tbl_002", "T2")
    store.add_table("tbl_003", "T3")
    store.add_menu_item("itm_001", "Margherita Pizza", 12)
    store.add_menu_item("itm_002", "Chicken Alfredo", 15)
    store.add_menu_item("itm_003", "Caesar Salad", 5)
    store.add_menu_item("itm_004", "Tiramisu", None, is_available=False)
    return store


class FakeOrderRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def add(self, order: Order) -> None:
        self._store.orders[order.order_id] = order

    def get(self, order_id: OrderId) -> Order | None:
        return self._store.orders.get(order_id)

    def get_for_update(self, order_id: OrderId) -> Order | None:
        return self._store.orders.get(order_id)

    def save_with_version(self, order: Order, expected_version: int) -> Order:
        if self._store.forced_order_conflicts > 0:
            self._store.forced_order_conflicts -= 1
            raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")
        current = self._store.orders.get(order.order_id)
        if current is None or current.version != expected_version:
            raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")
        persisted = replace(order, version=expected_version + 1)
        self._store.orders[order.order_id] = persisted
        return persisted

    def find_live_for_table(self, table_id: TableId) -> Order | None:
        live = [
            order
            for order in self._store.orders.values()
            if order.table_id == table_id and order.status not in TERMINAL_ORDER_STATUSES
        ]
        return max(live, key=lambda order: order.created_at) if live else None

    def list_active(self, restaurant_id: RestaurantId) -> list[Order]:
        return sorted(
            (
                order
                for order in self._store.orders.values()
                if order.restaurant_id == restaurant_id
                and order.status not in TERMINAL_ORDER_STATUSES
            ),
            key=lambda order: (order.created_at, order.order_id),
        )

    def list_for_table(self, restaurant_id: RestaurantId, table_id: TableId) -> list[Order]:
        return sorted(
            (
                order
                for order in self._store.orders.values()
                if order.restaurant_id == restaurant_id and order.table_id == table_id
            ),
            key=lambda order: (order.created_at, order.order_id),
            reverse=True,
        )

    def list_for_kitchen(self, restaurant_id: RestaurantId) -> list[Order]:
        on_board = {item.order_id for item in self._store.items.values() if item.on_board}
        return sorted(
            (
                order
                for order in self._store.orders.values()
                if order.restaurant_id == restaurant_id and order.order_id in on_board
            ),
            key=lambda order: (order.created_at, order.order_id),
        )


class FakeOrderItemRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def add(self, item: OrderItem) -> None:
        self._store.items[item.item_id] = item

    def get(self, item_id: OrderItemId) -> OrderItem | None:
        return self._store.items.get(item_id)

    def list_for_order(self, order_id: OrderId) -> list[OrderItem]:
        return self.list_for_orders([order_id]).get(order_id, [])

    def list_for_orders(self, order_ids: Iterable[OrderId]) -> dict[OrderId, list[OrderItem]]:
        wanted = set(order_ids)
        grouped: dict[OrderId, list[OrderItem]] = {}
        for item in sorted(self._store.items.values(), key=lambda i: (i.created_at, i.item_id)):
            if item.order_id in wanted:
                grouped.setdefault(item.order_id, []).append(item)
        return grouped

    def save_with_status(self, item: OrderItem, expected_status: OrderItemStatus) -> None:
        current = self._store.items.get(item.item_id)
        if current is None or current.status != expected_status:
            raise OptimisticConcurrencyError(
                f"order item {item.item_id} is no longer {expected_status.value}"
            )
        self._store.items[item.item_id] = item

    def count_unserved_for_table(self, table_id: TableId) -> int:
        table_orders = {
            order.order_id for order in self._store.orders.values() if order.table_id == table_id
        }
        return sum(
            1 for item in self._store.items.values() if item.order_id in table_orders and item.on_board
        )


class FakeTableRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get(self, table_id: TableId, restaurant_id: RestaurantId) -> Table | None:
        table = self._store.tables.get(table_id)
        if table is None or table.restaurant_id != restaurant_id:
            return None
        return table

    def list_for_restaurant(self, restaurant_id: RestaurantId) -> list[Table]:
        return sorted(
            (table for table in self._store.tables.values() if table.restaurant_id == restaurant_id),
            key=lambda table: (table.label, table.table_id),
        )

    def save_with_status(self, table: Table, expected_status: TableStatus) -> bool:
        current = self._store.tables.get(table.table_id)
        if current is None or current.status != expected_status:
            return False
        self._store.tables[table.table_id] = table
        return True


class FakeEventLog:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def append(self, event: Event) -> None:
        self._store.events.append(event)

    def list_for_order(self, order_id: OrderId) -> list[Event]:
        return [event for event in self._store.events if event.order_id == order_id]


class FakeMenuCatalog:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get_items(
        self,
        restaurant_id: RestaurantId,
        item_ids: Iterable[MenuItemId],
    ) -> dict[MenuItemId, CatalogItem]:
        return {
            item_id: self._store.catalog[item_id]
            for item_id in item_ids
            if item_id in self._store.catalog
            and self._store.catalog[item_id].restaurant_id == restaurant_id
        }


class FakeUnitOfWork:
    """Serialized transaction over an ``InMemoryStore``; uncommitted writes are rolled back."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self.orders = FakeOrderRepository(store)
        self.items = FakeOrderItemRepository(store)
        self.tables = FakeTableRepository(store)
        self.events = FakeEventLog(store)
        self.catalog = FakeMenuCatalog(store)
        self._snapshot: tuple | None = None

    def __enter__(self) -> FakeUnitOfWork:
        self._store.lock.acquire()
        self._snapshot = self._take_snapshot()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._snapshot is not None:
                orders, items, tables, events = self._snapshot
                self._store.orders = orders
                self._store.items = items
                self._store.tables = tables
                self._store.events = events
        finally:
            self._snapshot = None
            self._store.lock.release()

    def commit(self) -> None:
        self._store.commits += 1
        self._snapshot = self._take_snapshot()

    def _take_snapshot(self) -> tuple:
        return (
            dict(self._store.orders),
            dict(self._store.items),
            dict(self._store.tables),
            list(self._store.events),
        )


def uow_factory_for(store: InMemoryStore):
    return lambda: FakeUnitOfWork(store)


class AllowAllAuthorizer:
    def is_allowed(self, actor_id: StaffId, capability: str) -> bool:
        return True

    def belongs_to(self, actor_id: StaffId, restaurant_id: RestaurantId) -> bool:
        return True


class DenyAllAuthorizer:
    def is_allowed(self, actor_id: StaffId, capability: str) -> bool:
        return False

    def belongs_to(self, actor_id: StaffId, restaurant_id: RestaurantId) -> bool:
        return False


class FakePublisher:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def publish(self, channel: str, message: str) -> None:
        self.messages.append((channel, message))


class FailingPublisher:
    def publish(self, channel: str, message: str) -> None:
        raise ConnectionError("redis down")


class FakeCache:
    def __init__(self, fail: bool = False) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self._fail = fail

    def get(self, key: str) -> str | None:
        if self._fail:
            raise ConnectionError("cache down")
        return self.values.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if self._fail:
            raise ConnectionError("cache down")
        self.values[key] = value
        self.ttls[key] = ttl_seconds

    def delete(self, key: str) -> None:
        if self._fail:
            raise ConnectionError("cache down")
        self.values.pop(key, None)


class FakeStaffDirectory:
    def __init__(
        self,
        roles: dict[str, str],
        capabilities: dict[str, set[str]],
        restaurants: dict[str, str] | None = None,
    ) -> None:
        self._roles = roles
        # Staff without an explicit restaurant work at RESTAURANT_ID.
        self._restaurants = restaurants or {}
        self._capabilities = capabilities
        self.capability_lookups = 0

    def get_role(self, staff_id: StaffId) -> str | None:
        return self._roles.get(str(staff_id))

    def get_restaurant(self, staff_id: StaffId) -> RestaurantId | None:
        if str(staff_id) not in self._roles:
            return None
        return RestaurantId(self._restaurants.get(str(staff_id), RESTAURANT_ID))

    def get_role_capabilities(self, role: str) -> set[str]:
        self.capability_lookups += 1
        return set(self._capabilities.get(role, set()))
