from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from sqlalchemy import Select, exists, func, select, update
from sqlalchemy.orm import Session

from orderflow.application.ports.repositories import (
    OptimisticConcurrencyError,
    OrderItemRepository,
    OrderRepository,
)
from orderflow.domain.common.ids import (
    MenuItemId,
    OrderId,
    OrderItemId,
    RestaurantId,
    StaffId,
    TableId,
)
from orderflow.domain.order.entities import Order, OrderItem, ServePolicy
from orderflow.domain.order.transitions import (
    TERMINAL_ORDER_STATUSES,
    OrderItemStatus,
    OrderStatus,
)
from orderflow.infrastructure.db.models.order import OrderItemModel, OrderModel
from orderflow.infrastructure.db.repositories._time import as_utc, as_utc_or_none

_TERMINAL_ORDER_VALUES = [status.value for status in TERMINAL_ORDER_STATUSES]
_BOARD_ITEM_VALUES = [
    OrderItemStatus.PENDING.value,
    OrderItemStatus.PREPARING.value,
    OrderItemStatus.READY.value,
]


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, order: Order) -> None:
        self._session.add(
            OrderModel(
                id=str(order.order_id),
                restaurant_id=str(order.restaurant_id),
                table_id=str(order.table_id) if order.table_id is not None else None,
                staff_id=str(order.staff_id),
                status=order.status.value,
                serve_policy=order.serve_policy.value,
                customer_name=order.customer_name,
                customer_phone=order.customer_phone,
                note=order.note,
                created_at=order.created_at,
                updated_at=order.updated_at,
                version=order.version,
            )
        )
        self._session.flush()

    def get(self, order_id: OrderId) -> Order | None:
        statement = select(OrderModel).where(OrderModel.id == str(order_id))
        model = self._session.execute(
            statement.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def get_for_update(self, order_id: OrderId) -> Order | None:
        # FOR UPDATE is dropped by dialects without row locks (SQLite).
        statement = select(OrderModel).where(OrderModel.id == str(order_id)).with_for_update()
        model = self._session.execute(
            statement.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def save_with_version(self, order: Order, expected_version: int) -> Order:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order.order_id),
                OrderModel.version == expected_version,
            )
            .values(
                status=order.status.value,
                staff_id=str(order.staff_id),
                updated_at=order.updated_at,
                version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(statement)
        if result.rowcount != 1:
            raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")
        return replace(order, version=expected_version + 1)

    def find_live_for_table(self, table_id: TableId) -> Order | None:
        statement = (
            select(OrderModel)
            .where(
                OrderModel.table_id == str(table_id),
                OrderModel.status.not_in(_TERMINAL_ORDER_VALUES),
            )
            .order_by(OrderModel.created_at.desc())
            .limit(1)
        )
        model = self._session.execute(
            statement.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def list_active(self, restaurant_id: RestaurantId) -> list[Order]:
        statement = (
            select(OrderModel)
            .where(
                OrderModel.restaurant_id == str(restaurant_id),
                OrderModel.status.not_in(_TERMINAL_ORDER_VALUES),
            )
            .order_by(OrderModel.created_at, OrderModel.id)
        )
        return self._fetch(statement)

    def list_for_table(self, restaurant_id: RestaurantId, table_id: TableId) -> list[Order]:
        statement = (
            select(OrderModel)
            .where(
                OrderModel.restaurant_id == str(restaurant_id),
                OrderModel.table_id == str(table_id),
            )
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )
        return self._fetch(statement)

    def list_for_kitchen(self, restaurant_id: RestaurantId) -> list[Order]:
        on_board = exists().where(
            OrderItemModel.order_id == OrderModel.id,
            OrderItemModel.status.in_(_BOARD_ITEM_VALUES),
        )
        statement = (
            select(OrderModel)
            .where(OrderModel.restaurant_id == str(restaurant_id), on_board)
            .order_by(OrderModel.created_at, OrderModel.id)
        )
        return self._fetch(statement)

    def _fetch(self, statement: Select) -> list[Order]:
        models = self._session.execute(
            statement.execution_options(populate_existing=True)
        ).scalars().all()
        return [self._to_domain(model) for model in models]

    def _to_domain(self, model: OrderModel) -> Order:
        return Order(
            order_id=OrderId(model.id),
            restaurant_id=RestaurantId(model.restaurant_id),
            table_id=TableId(model.table_id) if model.table_id is not None else None,
            staff_id=StaffId(model.staff_id),
            status=OrderStatus(model.status),
            serve_policy=ServePolicy(model.serve_policy),
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
            customer_name=model.customer_name,
            customer_phone=model.customer_phone,
            note=model.note,
            version=model.version,
        )


class SqlAlchemyOrderItemRepository(OrderItemRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, item: OrderItem) -> None:
        self._session.add(
            OrderItemModel(
                id=str(item.item_id),
                order_id=str(item.order_id),
                menu_item_id=str(item.menu_item_id),
                quantity=item.quantity,
                note=item.note,
                status=item.status.value,
                created_at=item.created_at,
                updated_at=item.updated_at,
                started_at=item.started_at,
                completed_at=item.completed_at,
            )
        )
        self._session.flush()

    def get(self, item_id: OrderItemId) -> OrderItem | None:
        statement = select(OrderItemModel).where(OrderItemModel.id == str(item_id))
        model = self._session.execute(
            statement.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def list_for_order(self, order_id: OrderId) -> list[OrderItem]:
        return self.list_for_orders([order_id]).get(order_id, [])

    def list_for_orders(self, order_ids: Iterable[OrderId]) -> dict[OrderId, list[OrderItem]]:
        ids = [str(order_id) for order_id in order_ids]
        if not ids:
            return {}
        statement = (
            select(OrderItemModel)
            .where(OrderItemModel.order_id.in_(ids))
            .order_by(OrderItemModel.created_at, OrderItemModel.id)
            .execution_options(populate_existing=True)
        )
        grouped: dict[OrderId, list[OrderItem]] = {}
        for model in self._session.execute(statement).scalars():
            grouped.setdefault(OrderId(model.order_id), []).append(self._to_domain(model))
        return grouped

    def save_with_status(self, item: OrderItem, expected_status: OrderItemStatus) -> None:
        statement = (
            update(OrderItemModel)
            .where(
                OrderItemModel.id == str(item.item_id),
                OrderItemModel.status == expected_status.value,
            )
            .values(
                status=item.status.value,
                updated_at=item.updated_at,
                started_at=item.started_at,
                completed_at=item.completed_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(statement)
        if result.rowcount != 1:
            raise OptimisticConcurrencyError(
                f"order item {item.item_id} is no longer {expected_status.value}"
            )

    def count_unserved_for_table(self, table_id: TableId) -> int:
        statement = (
            select(func.count(OrderItemModel.id))
            .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
            .where(
                OrderModel.table_id == str(table_id),
                OrderItemModel.status.in_(_BOARD_ITEM_VALUES),
            )
        )
        return int(self._session.execute(statement).scalar_one())

    def _to_domain(self, model: OrderItemModel) -> OrderItem:
        return OrderItem(
            item_id=OrderItemId(model.id),
            order_id=OrderId(model.order_id),
            menu_item_id=MenuItemId(model.menu_item_id),
            quantity=model.quantity,
            status=OrderItemStatus(model.status),
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
            note=model.note,
            started_at=as_utc_or_none(model.started_at),
            completed_at=as_utc_or_none(model.completed_at),
        )
