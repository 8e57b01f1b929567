from __future__ import annotations

from fastapi import APIRouter

from orderflow.api import dependencies
from orderflow.api.dependencies import ActorId
from orderflow.application.dto.requests import ChangeItemStatusRequest
from orderflow.application.dto.responses import OrderResponse
from orderflow.application.use_cases.change_item_status import ChangeItemStatus
from orderflow.domain.common.ids import OrderItemId, StaffId

router = APIRouter()


def _change_item_status_use_case() -> ChangeItemStatus:
    return ChangeItemStatus(
        uow_factory=dependencies.uow_factory(),
        authorizer=dependencies.authorizer(),
        publisher=dependencies.publisher(),
    )


@router.post("/v1/order-items/{item_id}/status", response_model=OrderResponse)
def change_item_status(
    item_id: str,
    request_dto: ChangeItemStatusRequest,
    x_actor_id: ActorId,
) -> OrderResponse:
    """Moves one item and returns its parent order with the re-derived status."""
    return _change_item_status_use_case().execute(
        item_id=OrderItemId(item_id),
        new_status=request_dto.status,
        actor_id=StaffId(x_actor_id),
        trace_ctx=dependencies.trace_context(),
        idempotent=request_dto.idempotent,
    )
