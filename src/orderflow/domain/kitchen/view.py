"""Kitchen display projection.

Everything here is a pure function of the order/item snapshot it receives and
the ``now`` it is given, so the view can be rebuilt as often as the display
polls without touching state.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from orderflow.domain.common.ids import MenuItemId, OrderId, OrderItemId, RestaurantId, TableId
from orderflow.domain.menu.entities import CatalogItem
from orderflow.domain.order.derivation import derive_order_status
from orderflow.domain.order.entities import Order, OrderItem, ServePolicy
from orderflow.domain.order.transitions import OrderItemStatus, OrderStatus

BUDGET_FACTOR = 1.2
MIN_BUDGET = timedelta(minutes=5)


class HeatLevel(str, Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    ORANGE = "ORANGE"
    RED = "RED"


class KitchenColumn(str, Enum):
    PENDING = "PENDING"
    PREPARING = "PREPARING"
    READY = "READY"


class ItemHint(str, Enum):
    NONE = "NONE"
    WAITING = "WAITING"
    ACTIVE = "ACTIVE"


_COLUMN_BY_STATUS = {
    OrderStatus.PLACED: KitchenColumn.PENDING,
    OrderStatus.PREPARING: KitchenColumn.PREPARING,
    OrderStatus.READY: KitchenColumn.READY,
}


@dataclass(frozen=True)
class KitchenItemCard:
    item_id: OrderItemId
    menu_item_id: MenuItemId
    name: str
    quantity: int
    status: OrderItemStatus
    note: str | None
    prep_time_minutes: int | None
    is_blocking: bool
    hint: ItemHint


@dataclass(frozen=True)
class KitchenOrderCard:
    order_id: OrderId
    table_id: TableId | None
    table_label: str | None
    serve_policy: ServePolicy
    column: KitchenColumn
    heat: HeatLevel
    pulse: bool
    blocking: bool
    created_at: datetime
    last_progress_at: datetime
    budget: timedelta
    note: str | None
    customer_name: str | None
    items: list[KitchenItemCard] = field(default_factory=list)


@dataclass(frozen=True)
class KitchenView:
    restaurant_id: RestaurantId
    generated_at: datetime
    columns: dict[KitchenColumn, list[KitchenOrderCard]]

    @property
    def orders(self) -> list[KitchenOrderCard]:
        return [card for column in KitchenColumn for card in self.columns[column]]


def board_items(items: Iterable[OrderItem]) -> list[OrderItem]:
    return [item for item in items if item.on_board]


def last_progress_at(order: Order, items: Iterable[OrderItem]) -> datetime:
    items = list(items)
    completed = [item.completed_at for item in items if item.completed_at is not None]
    if completed:
        return max(completed)
    started = [item.started_at for item in items if item.started_at is not None]
    if started:
        return min(started)
    return order.created_at


def waiting_budget(prep_times_minutes: Iterable[int | None]) -> timedelta:
    total_minutes = sum(minutes or 0 for minutes in prep_times_minutes)
    return max(timedelta(minutes=total_minutes * BUDGET_FACTOR), MIN_BUDGET)


def heat_for(now: datetime, progress_at: datetime, budget: timedelta) -> HeatLevel:
    ratio = (now - progress_at) / budget
    if ratio < 0.5:
        return HeatLevel.GREEN
    if ratio < 0.8:
        return HeatLevel.YELLOW
    if ratio < 1.0:
        return HeatLevel.ORANGE
    return HeatLevel.RED


def is_blocking(serve_policy: ServePolicy, items: Iterable[OrderItem]) -> bool:
    """An ALL_AT_ONCE order whose started items are split between READY and PREPARING."""
    if serve_policy != ServePolicy.ALL_AT_ONCE:
        return False
    statuses = {item.status for item in items}
    return statuses == {OrderItemStatus.READY, OrderItemStatus.PREPARING}


def display_column(serve_policy: ServePolicy, items: Iterable[OrderItem]) -> KitchenColumn:
    derived = derive_order_status(serve_policy, (item.status for item in items))
    # COMPLETED/CANCELLED orders have no board items and never reach here.
    return _COLUMN_BY_STATUS.get(derived, KitchenColumn.PENDING)


def item_hint(status: OrderItemStatus, heat: HeatLevel) -> ItemHint:
    if status == OrderItemStatus.PREPARING:
        return ItemHint.ACTIVE
    if status == OrderItemStatus.PENDING and heat != HeatLevel.GREEN:
        return ItemHint.WAITING
    return ItemHint.NONE


def build_order_card(
    order: Order,
    items: list[OrderItem],
    catalog: Mapping[MenuItemId, CatalogItem],
    table_label: str | None,
    now: datetime,
) -> KitchenOrderCard | None:
    on_board = board_items(items)
    if not on_board:
        return None

    # Served items still count toward progress and budget; voided ones do not.
    worked = [item for item in items if item.status != OrderItemStatus.CANCELLED]
    progress_at = last_progress_at(order, worked)
    budget = waiting_budget(_prep_time(catalog, item.menu_item_id) for item in worked)
    heat = heat_for(now, progress_at, budget)
    blocking = is_blocking(order.serve_policy, on_board)

    return KitchenOrderCard(
        order_id=order.order_id,
        table_id=order.table_id,
        table_label=table_label,
        serve_policy=order.serve_policy,
        column=display_column(order.serve_policy, items),
        heat=heat,
        pulse=heat == HeatLevel.RED or blocking,
        blocking=blocking,
        created_at=order.created_at,
        last_progress_at=progress_at,
        budget=budget,
        note=order.note,
        customer_name=order.customer_name,
        items=[
            KitchenItemCard(
                item_id=item.item_id,
                menu_item_id=item.menu_item_id,
                name=_item_name(catalog, item.menu_item_id),
                quantity=item.quantity,
                status=item.status,
                note=item.note,
                prep_time_minutes=_prep_time(catalog, item.menu_item_id),
                is_blocking=blocking and item.status != OrderItemStatus.READY,
                hint=item_hint(item.status, heat),
            )
            for item in on_board
        ],
    )


def build_kitchen_view(
    restaurant_id: RestaurantId,
    orders: Iterable[tuple[Order, list[OrderItem]]],
    catalog: Mapping[MenuItemId, CatalogItem],
    table_labels: Mapping[TableId, str],
    now: datetime,
) -> KitchenView:
    columns: dict[KitchenColumn, list[KitchenOrderCard]] = {column: [] for column in KitchenColumn}
    ordered = sorted(orders, key=lambda pair: (pair[0].created_at, str(pair[0].order_id)))
    for order, items in ordered:
        label = table_labels.get(order.table_id) if order.table_id is not None else None
        card = build_order_card(order, items, catalog, label, now)
        if card is not None:
            columns[card.column].append(card)
    return KitchenView(restaurant_id=restaurant_id, generated_at=now, columns=columns)


def _prep_time(catalog: Mapping[MenuItemId, CatalogItem], menu_item_id: MenuItemId) -> int | None:
    entry = catalog.get(menu_item_id)
    return entry.prep_time_minutes if entry is not None else None


def _item_name(catalog: Mapping[MenuItemId, CatalogItem], menu_item_id: MenuItemId) -> str:
    entry = catalog.get(menu_item_id)
    return entry.name if entry is not None else str(menu_item_id)
