from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from orderflow.domain.common.ids import MenuItemId, OrderId, OrderItemId, RestaurantId, StaffId, TableId
from orderflow.domain.order.entities import (
    OrderLockedError,
    ServePolicy,
    create_pending_item,
    create_placed_order,
)
from orderflow.domain.order.transitions import (
    ITEM_TRANSITIONS,
    TERMINAL_ITEM_STATUSES,
    TERMINAL_ORDER_STATUSES,
    OrderItemStatus,
    OrderStatus,
    StatusTransitionError,
    can_transition_item,
    ensure_order_transition,
)

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _order(status: OrderStatus = OrderStatus.PLACED):
    order = create_placed_order(
        order_id=OrderId("ord_001"),
        restaurant_id=RestaurantId("rst_001"),
        table_id=TableId("tbl_001"),
        staff_id=StaffId("stf_waiter"),
        serve_policy=ServePolicy.PARTIAL,
        now=NOW,
    )
    return order.with_status(status, NOW) if status != OrderStatus.PLACED else order


def _item():
    return create_pending_item(
        item_id=OrderItemId("itm_a"),
        order=_order(),
        menu_item_id=MenuItemId("itm_001"),
        quantity=2,
        now=NOW,
    )


def test_terminal_statuses_have_no_way_out() -> None:
    assert TERMINAL_ITEM_STATUSES == {OrderItemStatus.SERVED, OrderItemStatus.CANCELLED}
    assert TERMINAL_ORDER_STATUSES == {OrderStatus.COMPLETED, OrderStatus.CANCELLED}


def test_item_transition_table_is_forward_only() -> None:
    assert can_transition_item(OrderItemStatus.PENDING, OrderItemStatus.PREPARING)
    assert can_transition_item(OrderItemStatus.READY, OrderItemStatus.SERVED)
    assert not can_transition_item(OrderItemStatus.PENDING, OrderItemStatus.READY)
    assert not can_transition_item(OrderItemStatus.READY, OrderItemStatus.PREPARING)
    for status in OrderItemStatus:
        assert not can_transition_item(status, status)
        if status not in TERMINAL_ITEM_STATUSES:
            assert OrderItemStatus.CANCELLED in ITEM_TRANSITIONS[status]


def test_manual_order_transitions() -> None:
    ensure_order_transition(OrderStatus.READY, OrderStatus.COMPLETED)
    ensure_order_transition(OrderStatus.PLACED, OrderStatus.CANCELLED)
    with pytest.raises(StatusTransitionError) as exc_info:
        ensure_order_transition(OrderStatus.PREPARING, OrderStatus.COMPLETED)
    assert exc_info.value.kind == "order"
    with pytest.raises(StatusTransitionError):
        ensure_order_transition(OrderStatus.COMPLETED, OrderStatus.CANCELLED)


def test_item_timestamps_are_set_once() -> None:
    item = _item()
    started = item.transition(OrderItemStatus.PREPARING, NOW + timedelta(minutes=1))
    ready = started.transition(OrderItemStatus.READY, NOW + timedelta(minutes=9))
    served = ready.transition(OrderItemStatus.SERVED, NOW + timedelta(minutes=12))

    assert started.started_at == NOW + timedelta(minutes=1)
    assert started.completed_at is None
    assert served.started_at == NOW + timedelta(minutes=1)
    assert served.completed_at == NOW + timedelta(minutes=9)
    assert served.updated_at == NOW + timedelta(minutes=12)


def test_invalid_item_transition_leaves_item_untouched() -> None:
    item = _item()
    with pytest.raises(StatusTransitionError) as exc_info:
        item.transition(OrderItemStatus.SERVED, NOW)
    assert exc_info.value.current == "PENDING"
    assert exc_info.value.attempted == "SERVED"
    assert item.status == OrderItemStatus.PENDING


def test_cancelling_pending_item_sets_no_timestamps() -> None:
    cancelled = _item().transition(OrderItemStatus.CANCELLED, NOW)
    assert cancelled.started_at is None
    assert cancelled.completed_at is None
    assert not cancelled.is_active
    assert not cancelled.on_board


def test_items_only_join_placed_orders() -> None:
    with pytest.raises(OrderLockedError):
        create_pending_item(
            item_id=OrderItemId("itm_b"),
            order=_order(OrderStatus.PREPARING),
            menu_item_id=MenuItemId("itm_001"),
            quantity=1,
            now=NOW,
        )


def test_item_quantity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        create_pending_item(
            item_id=OrderItemId("itm_b"),
            order=_order(),
            menu_item_id=MenuItemId("itm_001"),
            quantity=0,
            now=NOW,
        )


def test_closed_order_rejects_changes() -> None:
    _order(OrderStatus.READY).ensure_open()
    with pytest.raises(OrderLockedError):
        _order(OrderStatus.COMPLETED).ensure_open()
