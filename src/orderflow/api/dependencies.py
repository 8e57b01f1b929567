"""Wiring of use cases to their infrastructure adapters.

Route modules call these factories per request; tests replace them with
in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Header

from orderflow.api.middleware.request_id import ACTOR_ID_HEADER, get_request_id
from orderflow.application.authorization import RoleBasedAuthorizer
from orderflow.application.dto.responses import KitchenViewResponse
from orderflow.application.mappers.event_envelope import TraceContext, serialize_kitchen_view_event
from orderflow.application.mappers.kitchen_mapper import to_kitchen_view_response
from orderflow.application.ports.repositories import UnitOfWork
from orderflow.application.ports.services import Authorizer, EventPublisher
from orderflow.application.use_cases.kitchen_view import GetKitchenView
from orderflow.domain.common.ids import RestaurantId
from orderflow.infrastructure.cache.cache_store import RedisCacheStore
from orderflow.infrastructure.db.repositories.staff_repo import SqlAlchemyStaffDirectory
from orderflow.infrastructure.db.session import get_engine
from orderflow.infrastructure.db.unit_of_work import SqlAlchemyUnitOfWork
from orderflow.infrastructure.messaging.redis_publisher import RedisEventPublisher
from orderflow.infrastructure.observability.otel import current_trace_id

ActorId = Annotated[str, Header(alias=ACTOR_ID_HEADER)]


def uow_factory() -> Callable[[], UnitOfWork]:
    engine = get_engine()
    return lambda: SqlAlchemyUnitOfWork(engine)


def authorizer() -> Authorizer:
    return RoleBasedAuthorizer(
        staff_directory=SqlAlchemyStaffDirectory(),
        cache=RedisCacheStore(),
    )


def publisher() -> EventPublisher:
    return RedisEventPublisher()


def kitchen_snapshot(restaurant_id: str) -> str:
    """Current board for ``restaurant_id`` as a ``kitchen.view`` envelope."""
    now = datetime.now(timezone.utc)
    view = GetKitchenView(uow_factory(), authorizer()).build(RestaurantId(restaurant_id), now)
    response: KitchenViewResponse = to_kitchen_view_response(view)
    return serialize_kitchen_view_event(occurred_at=now, view=response)


def trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())
