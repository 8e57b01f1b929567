from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from orderflow.domain.common.ids import MenuItemId, OrderId, OrderItemId, RestaurantId, StaffId, TableId
from orderflow.domain.kitchen.view import (
    HeatLevel,
    ItemHint,
    KitchenColumn,
    build_kitchen_view,
    build_order_card,
    heat_for,
    is_blocking,
    last_progress_at,
    waiting_budget,
)
from orderflow.domain.menu.entities import CatalogItem
from orderflow.domain.order.entities import Order, OrderItem, ServePolicy
from orderflow.domain.order.transitions import OrderItemStatus, OrderStatus

T0 = datetime(2026, 10, 1, 18, 0, tzinfo=timezone.utc)
RESTAURANT = RestaurantId("rst_001")

CATALOG = {
    MenuItemId("itm_pizza"): CatalogItem(
        item_id=MenuItemId("itm_pizza"),
        restaurant_id=RESTAURANT,
        name="Margherita Pizza",
        prep_time_minutes=10,
        is_available=True,
    ),
    MenuItemId("itm_salad"): CatalogItem(
        item_id=MenuItemId("itm_salad"),
        restaurant_id=RESTAURANT,
        name="Caesar Salad",
        prep_time_minutes=2,
        is_available=True,
    ),
}


def _order(
    order_id: str = "ord_001",
    policy: ServePolicy = ServePolicy.PARTIAL,
    created_at: datetime = T0,
    table_id: str | None = "tbl_001",
) -> Order:
    return Order(
        order_id=OrderId(order_id),
        restaurant_id=RESTAURANT,
        table_id=TableId(table_id) if table_id else None,
        staff_id=StaffId("stf_waiter"),
        status=OrderStatus.PLACED,
        serve_policy=policy,
        created_at=created_at,
        updated_at=created_at,
    )


def _item(
    item_id: str,
    status: OrderItemStatus = OrderItemStatus.PENDING,
    menu_item_id: str = "itm_pizza",
    order_id: str = "ord_001",
    started_at: datetime | None = None,
    completed_at: datetime | None = None,
) -> OrderItem:
    return OrderItem(
        item_id=OrderItemId(item_id),
        order_id=OrderId(order_id),
        menu_item_id=MenuItemId(menu_item_id),
        quantity=1,
        status=status,
        created_at=T0,
        updated_at=completed_at or started_at or T0,
        started_at=started_at,
        completed_at=completed_at,
    )


def test_budget_is_scaled_prep_time() -> None:
    assert waiting_budget([10]) == timedelta(minutes=12)
    assert waiting_budget([10, 15]) == timedelta(minutes=30)


@pytest.mark.parametrize("prep_times", [[], [None], [2], [0, 1]])
def test_budget_has_five_minute_floor(prep_times: list[int | None]) -> None:
    assert waiting_budget(prep_times) == timedelta(minutes=5)


@pytest.mark.parametrize(
    ("elapsed_minutes", "expected"),
    [
        (0, HeatLevel.GREEN),
        (5.9, HeatLevel.GREEN),
        (6, HeatLevel.YELLOW),
        (9.5, HeatLevel.YELLOW),
        (9.6, HeatLevel.ORANGE),
        (11.9, HeatLevel.ORANGE),
        (12, HeatLevel.RED),
        (60, HeatLevel.RED),
    ],
)
def test_heat_thresholds(elapsed_minutes: float, expected: HeatLevel) -> None:
    now = T0 + timedelta(minutes=elapsed_minutes)
    assert heat_for(now, T0, timedelta(minutes=12)) == expected


def test_progress_prefers_latest_completion_then_earliest_start() -> None:
    order = _order()
    assert last_progress_at(order, [_item("a")]) == T0

    started = [
        _item("a", OrderItemStatus.PREPARING, started_at=T0 + timedelta(minutes=4)),
        _item("b", OrderItemStatus.PREPARING, started_at=T0 + timedelta(minutes=2)),
    ]
    assert last_progress_at(order, started) == T0 + timedelta(minutes=2)

    mixed = started + [
        _item(
            "c",
            OrderItemStatus.READY,
            started_at=T0 + timedelta(minutes=1),
            completed_at=T0 + timedelta(minutes=7),
        ),
        _item(
            "d",
            OrderItemStatus.READY,
            started_at=T0 + timedelta(minutes=1),
            completed_at=T0 + timedelta(minutes=9),
        ),
    ]
    assert last_progress_at(order, mixed) == T0 + timedelta(minutes=9)


def test_blocking_needs_ready_and_preparing_under_all_at_once() -> None:
    ready = _item("a", OrderItemStatus.READY, completed_at=T0)
    preparing = _item("b", OrderItemStatus.PREPARING, started_at=T0)
    pending = _item("c")

    assert is_blocking(ServePolicy.ALL_AT_ONCE, [ready, preparing])
    assert not is_blocking(ServePolicy.PARTIAL, [ready, preparing])
    assert not is_blocking(ServePolicy.ALL_AT_ONCE, [ready, pending])
    assert not is_blocking(ServePolicy.ALL_AT_ONCE, [ready, preparing, pending])
    assert not is_blocking(ServePolicy.ALL_AT_ONCE, [ready])


def test_blocking_order_pulses_and_flags_unready_items() -> None:
    order = _order(policy=ServePolicy.ALL_AT_ONCE)
    items = [
        _item("a", OrderItemStatus.READY, started_at=T0, completed_at=T0 + timedelta(minutes=3)),
        _item("b", OrderItemStatus.PREPARING, started_at=T0 + timedelta(minutes=1)),
    ]

    card = build_order_card(order, items, CATALOG, "T1", now=T0 + timedelta(minutes=4))

    assert card is not None
    assert card.blocking
    assert card.pulse
    assert card.heat == HeatLevel.GREEN
    assert card.column == KitchenColumn.PREPARING
    assert [item.is_blocking for item in card.items] == [False, True]


def test_red_order_pulses_and_marks_pending_items_waiting() -> None:
    order = _order()
    items = [
        _item("a", OrderItemStatus.PENDING),
        _item("b", OrderItemStatus.PREPARING, menu_item_id="itm_salad", started_at=T0),
    ]

    card = build_order_card(order, items, CATALOG, "T1", now=T0 + timedelta(minutes=30))

    assert card is not None
    assert card.budget == timedelta(minutes=14.4)
    assert card.heat == HeatLevel.RED
    assert card.pulse
    assert not card.blocking
    assert [item.hint for item in card.items] == [ItemHint.WAITING, ItemHint.ACTIVE]
    assert [item.name for item in card.items] == ["Margherita Pizza", "Caesar Salad"]


def test_green_pending_item_has_no_hint() -> None:
    card = build_order_card(_order(), [_item("a")], CATALOG, "T1", now=T0 + timedelta(minutes=1))
    assert card is not None
    assert card.items[0].hint == ItemHint.NONE
    assert card.column == KitchenColumn.PENDING


def test_served_items_leave_the_board_but_still_shape_the_column() -> None:
    order = _order()
    items = [
        _item("a", OrderItemStatus.SERVED, started_at=T0, completed_at=T0 + timedelta(minutes=5)),
        _item("b", OrderItemStatus.READY, started_at=T0, completed_at=T0 + timedelta(minutes=6)),
        _item("c", OrderItemStatus.CANCELLED),
    ]

    card = build_order_card(order, items, CATALOG, "T1", now=T0 + timedelta(minutes=7))

    assert card is not None
    assert [item.item_id for item in card.items] == ["b"]
    assert card.column == KitchenColumn.READY
    assert card.budget == timedelta(minutes=24)


def test_served_item_completion_keeps_a_partial_order_fresh() -> None:
    order = _order()
    items = [
        _item("a", OrderItemStatus.SERVED, started_at=T0, completed_at=T0 + timedelta(minutes=9)),
        _item("b", OrderItemStatus.PENDING),
    ]

    card = build_order_card(order, items, CATALOG, "T1", now=T0 + timedelta(minutes=12))

    assert card is not None
    assert card.last_progress_at == T0 + timedelta(minutes=9)
    assert card.budget == timedelta(minutes=24)
    assert card.heat == HeatLevel.GREEN
    assert [item.item_id for item in card.items] == ["b"]


def test_orders_without_board_items_are_not_shown() -> None:
    order = _order()
    assert build_order_card(order, [], CATALOG, "T1", now=T0) is None
    served = [_item("a", OrderItemStatus.SERVED, started_at=T0, completed_at=T0)]
    assert build_order_card(order, served, CATALOG, "T1", now=T0) is None


def test_unknown_menu_item_falls_back_to_id_and_floor_budget() -> None:
    card = build_order_card(
        _order(),
        [_item("a", menu_item_id="itm_gone")],
        CATALOG,
        None,
        now=T0,
    )
    assert card is not None
    assert card.items[0].name == "itm_gone"
    assert card.items[0].prep_time_minutes is None
    assert card.budget == timedelta(minutes=5)


def test_view_groups_by_column_oldest_first() -> None:
    later = _order("ord_002", created_at=T0 + timedelta(minutes=5), table_id=None)
    earlier = _order("ord_001", created_at=T0)
    ready_order = _order("ord_003", created_at=T0 + timedelta(minutes=1), table_id="tbl_002")
    empty = _order("ord_004", created_at=T0 - timedelta(minutes=5))

    view = build_kitchen_view(
        RESTAURANT,
        [
            (later, [_item("x", order_id="ord_002")]),
            (earlier, [_item("y", order_id="ord_001")]),
            (
                ready_order,
                [_item("z", OrderItemStatus.READY, order_id="ord_003", completed_at=T0)],
            ),
            (empty, []),
        ],
        CATALOG,
        {TableId("tbl_001"): "T1", TableId("tbl_002"): "T2"},
        now=T0 + timedelta(minutes=6),
    )

    pending = view.columns[KitchenColumn.PENDING]
    assert [card.order_id for card in pending] == ["ord_001", "ord_002"]
    assert [card.table_label for card in pending] == ["T1", None]
    assert [card.order_id for card in view.columns[KitchenColumn.READY]] == ["ord_003"]
    assert view.columns[KitchenColumn.PREPARING] == []
    assert [card.order_id for card in view.orders] == ["ord_001", "ord_002", "ord_003"]


def test_view_is_deterministic_for_fixed_now() -> None:
    pairs = [(_order(), [_item("a"), _item("b", menu_item_id="itm_salad")])]
    now = T0 + timedelta(minutes=8)
    first = build_kitchen_view(RESTAURANT, pairs, CATALOG, {}, now)
    second = build_kitchen_view(RESTAURANT, list(reversed(pairs)), CATALOG, {}, now)
    assert first == second
