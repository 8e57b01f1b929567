from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from orderflow.application.authorization import Capability, require
from orderflow.application.dto.responses import KitchenViewResponse
from orderflow.application.mappers.kitchen_mapper import to_kitchen_view_response
from orderflow.application.metrics.order_lifecycle import record_kitchen_board
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.application.ports.services import Authorizer
from orderflow.domain.common.ids import RestaurantId, StaffId
from orderflow.domain.kitchen.view import KitchenView, build_kitchen_view


class GetKitchenView:
    """Read-only board projection; safe to call on every poll or push."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork], authorizer: Authorizer) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer

    def build(self, restaurant_id: RestaurantId, now: datetime | None = None) -> KitchenView:
        current = now or datetime.now(timezone.utc)
        with self._uow_factory() as uow:
            orders = uow.orders.list_for_kitchen(restaurant_id)
            items_by_order = uow.items.list_for_orders([order.order_id for order in orders])
            menu_item_ids = {
                item.menu_item_id for items in items_by_order.values() for item in items
            }
            catalog = uow.catalog.get_items(restaurant_id, menu_item_ids)
            table_labels = {
                table.table_id: table.label
                for table in uow.tables.list_for_restaurant(restaurant_id)
            }

        view = build_kitchen_view(
            restaurant_id,
            [(order, items_by_order.get(order.order_id, [])) for order in orders],
            catalog,
            table_labels,
            current,
        )
        record_kitchen_board(view)
        return view

    def execute(
        self,
        restaurant_id: RestaurantId,
        actor_id: StaffId,
        now: datetime | None = None,
    ) -> KitchenViewResponse:
        require(self._authorizer, actor_id, Capability.ORDER_VIEW, restaurant_id)
        return to_kitchen_view_response(self.build(restaurant_id, now))
