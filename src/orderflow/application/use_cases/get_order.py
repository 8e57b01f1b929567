from __future__ import annotations

from collections.abc import Callable

from orderflow.application.authorization import Capability, require, require_membership
from orderflow.application.dto.responses import OrderResponse, OrdersResponse
from orderflow.application.errors import OrderNotFoundError, TableNotFoundError
from orderflow.application.mappers.order_mapper import to_order_response, to_orders_response
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.application.ports.services import Authorizer
from orderflow.domain.common.ids import OrderId, RestaurantId, StaffId, TableId
from orderflow.domain.order.entities import Order, OrderItem


def _with_items(uow: UnitOfWork, orders: list[Order]) -> list[tuple[Order, list[OrderItem]]]:
    items_by_order = uow.items.list_for_orders([order.order_id for order in orders])
    return [(order, items_by_order.get(order.order_id, [])) for order in orders]


class GetOrder:
    def __init__(self, uow_factory: Callable[[], UnitOfWork], authorizer: Authorizer) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer

    def execute(self, order_id: OrderId, actor_id: StaffId) -> OrderResponse:
        require(self._authorizer, actor_id, Capability.ORDER_VIEW)
        with self._uow_factory() as uow:
            order = uow.orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(f"order {order_id} not found", order_id=str(order_id))
            require_membership(self._authorizer, actor_id, order.restaurant_id)
            items = uow.items.list_for_order(order_id)
        return to_order_response(order, items)


class ListActiveOrders:
    def __init__(self, uow_factory: Callable[[], UnitOfWork], authorizer: Authorizer) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer

    def execute(self, restaurant_id: RestaurantId, actor_id: StaffId) -> OrdersResponse:
        require(self._authorizer, actor_id, Capability.ORDER_VIEW, restaurant_id)
        with self._uow_factory() as uow:
            pairs = _with_items(uow, uow.orders.list_active(restaurant_id))
        return to_orders_response(pairs)


class ListTableOrders:
    def __init__(self, uow_factory: Callable[[], UnitOfWork], authorizer: Authorizer) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer

    def execute(
        self,
        restaurant_id: RestaurantId,
        table_id: TableId,
        actor_id: StaffId,
    ) -> OrdersResponse:
        require(self._authorizer, actor_id, Capability.ORDER_VIEW, restaurant_id)
        with self._uow_factory() as uow:
            if uow.tables.get(table_id=table_id, restaurant_id=restaurant_id) is None:
                raise TableNotFoundError(
                    f"table not found for restaurant_id={restaurant_id}, table_id={table_id}",
                    table_id=str(table_id),
                )
            pairs = _with_items(uow, uow.orders.list_for_table(restaurant_id, table_id))
        return to_orders_response(pairs)
