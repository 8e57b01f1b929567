from __future__ import annotations

from fastapi import APIRouter

from orderflow.api import dependencies
from orderflow.api.dependencies import ActorId
from orderflow.application.dto.responses import KitchenViewResponse
from orderflow.application.use_cases.kitchen_view import GetKitchenView
from orderflow.domain.common.ids import RestaurantId, StaffId

router = APIRouter()


@router.get("/v1/restaurants/{restaurant_id}/kitchen/view", response_model=KitchenViewResponse)
def get_kitchen_view(
    restaurant_id: str,
    x_actor_id: ActorId,
) -> KitchenViewResponse:
    use_case = GetKitchenView(dependencies.uow_factory(), dependencies.authorizer())
    return use_case.execute(restaurant_id=RestaurantId(restaurant_id), actor_id=StaffId(x_actor_id))
