from __future__ import annotations

from fastapi import APIRouter, status

from orderflow.api import dependencies
from orderflow.api.dependencies import ActorId
from orderflow.application.dto.requests import (
    AddOrderItemRequest,
    ChangeOrderStatusRequest,
    CreateOrderRequest,
    TransferOrderRequest,
)
from orderflow.application.dto.responses import OrderEventsResponse, OrderResponse, OrdersResponse
from orderflow.application.use_cases.add_order_item import AddOrderItem
from orderflow.application.use_cases.change_order_status import ChangeOrderStatus
from orderflow.application.use_cases.create_order import CreateOrder
from orderflow.application.use_cases.get_order import GetOrder, ListActiveOrders
from orderflow.application.use_cases.order_events import ListOrderEvents
from orderflow.application.use_cases.transfer_order import TransferOrder
from orderflow.domain.common.ids import OrderId, RestaurantId, StaffId

router = APIRouter()


def _create_order_use_case() -> CreateOrder:
    return CreateOrder(
        uow_factory=dependencies.uow_factory(),
        authorizer=dependencies.authorizer(),
        publisher=dependencies.publisher(),
    )


def _add_order_item_use_case() -> AddOrderItem:
    return AddOrderItem(
        uow_factory=dependencies.uow_factory(),
        authorizer=dependencies.authorizer(),
        publisher=dependencies.publisher(),
    )


def _change_order_status_use_case() -> ChangeOrderStatus:
    return ChangeOrderStatus(
        uow_factory=dependencies.uow_factory(),
        authorizer=dependencies.authorizer(),
        publisher=dependencies.publisher(),
    )


def _transfer_order_use_case() -> TransferOrder:
    return TransferOrder(
        uow_factory=dependencies.uow_factory(),
        authorizer=dependencies.authorizer(),
        publisher=dependencies.publisher(),
    )


@router.post(
    "/v1/restaurants/{restaurant_id}/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    restaurant_id: str,
    request_dto: CreateOrderRequest,
    x_actor_id: ActorId,
) -> OrderResponse:
    return _create_order_use_case().execute(
        restaurant_id=RestaurantId(restaurant_id),
        request_dto=request_dto,
        actor_id=StaffId(x_actor_id),
        trace_ctx=dependencies.trace_context(),
    )


@router.get("/v1/restaurants/{restaurant_id}/orders", response_model=OrdersResponse)
def list_active_orders(restaurant_id: str, x_actor_id: ActorId) -> OrdersResponse:
    use_case = ListActiveOrders(dependencies.uow_factory(), dependencies.authorizer())
    return use_case.execute(restaurant_id=RestaurantId(restaurant_id), actor_id=StaffId(x_actor_id))


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, x_actor_id: ActorId) -> OrderResponse:
    use_case = GetOrder(dependencies.uow_factory(), dependencies.authorizer())
    return use_case.execute(order_id=OrderId(order_id), actor_id=StaffId(x_actor_id))


@router.post(
    "/v1/orders/{order_id}/items",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_order_item(
    order_id: str,
    request_dto: AddOrderItemRequest,
    x_actor_id: ActorId,
) -> OrderResponse:
    return _add_order_item_use_case().execute(
        order_id=OrderId(order_id),
        request_dto=request_dto,
        actor_id=StaffId(x_actor_id),
        trace_ctx=dependencies.trace_context(),
    )


@router.post("/v1/orders/{order_id}/status", response_model=OrderResponse)
def change_order_status(
    order_id: str,
    request_dto: ChangeOrderStatusRequest,
    x_actor_id: ActorId,
) -> OrderResponse:
    return _change_order_status_use_case().execute(
        order_id=OrderId(order_id),
        new_status=request_dto.status,
        actor_id=StaffId(x_actor_id),
        trace_ctx=dependencies.trace_context(),
    )


@router.post("/v1/orders/{order_id}/transfer", response_model=OrderResponse)
def transfer_order(
    order_id: str,
    request_dto: TransferOrderRequest,
    x_actor_id: ActorId,
) -> OrderResponse:
    return _transfer_order_use_case().execute(
        order_id=OrderId(order_id),
        request_dto=request_dto,
        actor_id=StaffId(x_actor_id),
        trace_ctx=dependencies.trace_context(),
    )


@router.get("/v1/orders/{order_id}/events", response_model=OrderEventsResponse)
def list_order_events(order_id: str, x_actor_id: ActorId) -> OrderEventsResponse:
    use_case = ListOrderEvents(dependencies.uow_factory(), dependencies.authorizer())
    return use_case.execute(order_id=OrderId(order_id), actor_id=StaffId(x_actor_id))
