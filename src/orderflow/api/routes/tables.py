from __future__ import annotations

from fastapi import APIRouter

from orderflow.api import dependencies
from orderflow.api.dependencies import ActorId
from orderflow.application.dto.requests import ChangeTableStatusRequest
from orderflow.application.dto.responses import OrdersResponse, TableResponse, TablesResponse
from orderflow.application.use_cases.get_order import ListTableOrders
from orderflow.application.use_cases.table_lifecycle import ChangeTableStatus, GetTable, ListTables
from orderflow.domain.common.ids import RestaurantId, StaffId, TableId

router = APIRouter()


@router.get("/v1/restaurants/{restaurant_id}/tables", response_model=TablesResponse)
def list_tables(restaurant_id: str, x_actor_id: ActorId) -> TablesResponse:
    use_case = ListTables(dependencies.uow_factory(), dependencies.authorizer())
    return use_case.execute(restaurant_id=RestaurantId(restaurant_id), actor_id=StaffId(x_actor_id))


@router.get("/v1/restaurants/{restaurant_id}/tables/{table_id}", response_model=TableResponse)
def get_table(restaurant_id: str, table_id: str, x_actor_id: ActorId) -> TableResponse:
    use_case = GetTable(dependencies.uow_factory(), dependencies.authorizer())
    return use_case.execute(
        restaurant_id=RestaurantId(restaurant_id),
        table_id=TableId(table_id),
        actor_id=StaffId(x_actor_id),
    )


@router.post(
    "/v1/restaurants/{restaurant_id}/tables/{table_id}/status",
    response_model=TableResponse,
)
def change_table_status(
    restaurant_id: str,
    table_id: str,
    request_dto: ChangeTableStatusRequest,
    x_actor_id: ActorId,
) -> TableResponse:
    use_case = ChangeTableStatus(
        uow_factory=dependencies.uow_factory(),
        authorizer=dependencies.authorizer(),
        publisher=dependencies.publisher(),
    )
    return use_case.execute(
        restaurant_id=RestaurantId(restaurant_id),
        table_id=TableId(table_id),
        new_status=request_dto.status,
        actor_id=StaffId(x_actor_id),
        trace_ctx=dependencies.trace_context(),
    )


@router.get(
    "/v1/restaurants/{restaurant_id}/tables/{table_id}/orders",
    response_model=OrdersResponse,
)
def list_table_orders(restaurant_id: str, table_id: str, x_actor_id: ActorId) -> OrdersResponse:
    use_case = ListTableOrders(dependencies.uow_factory(), dependencies.authorizer())
    return use_case.execute(
        restaurant_id=RestaurantId(restaurant_id),
        table_id=TableId(table_id),
        actor_id=StaffId(x_actor_id),
    )
