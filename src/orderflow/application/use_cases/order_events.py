from __future__ import annotations

from collections.abc import Callable

from orderflow.application.authorization import Capability, require, require_membership
from orderflow.application.dto.responses import OrderEventsResponse
from orderflow.application.errors import OrderNotFoundError
from orderflow.application.mappers.event_mapper import to_order_events_response
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.application.ports.services import Authorizer
from orderflow.domain.common.ids import OrderId, StaffId


class ListOrderEvents:
    """Audit trail of one order, oldest first."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork], authorizer: Authorizer) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer

    def execute(self, order_id: OrderId, actor_id: StaffId) -> OrderEventsResponse:
        require(self._authorizer, actor_id, Capability.ORDER_VIEW)
        with self._uow_factory() as uow:
            order = uow.orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(f"order {order_id} not found", order_id=str(order_id))
            require_membership(self._authorizer, actor_id, order.restaurant_id)
            events = uow.events.list_for_order(order_id)
        return to_order_events_response(order_id, events)
