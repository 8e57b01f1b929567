from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from orderflow.application.ports.repositories import EventLog
from orderflow.domain.common.ids import EventId, OrderId, RestaurantId, StaffId
from orderflow.domain.order.events import EntityType, Event, EventType
from orderflow.infrastructure.db.models.order import OrderEventModel
from orderflow.infrastructure.db.repositories._time import as_utc


class SqlAlchemyEventLog(EventLog):
    """Append-only: rows are never updated or deleted."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def append(self, event: Event) -> None:
        self._session.add(
            OrderEventModel(
                id=str(event.event_id),
                restaurant_id=str(event.restaurant_id),
                entity_type=event.entity_type.value,
                entity_id=event.entity_id,
                order_id=str(event.order_id) if event.order_id is not None else None,
                event_type=event.event_type.value,
                old_value=event.old_value,
                new_value=event.new_value,
                actor_id=str(event.actor_id),
                occurred_at=event.occurred_at,
            )
        )
        self._session.flush()

    def list_for_order(self, order_id: OrderId) -> list[Event]:
        statement = (
            select(OrderEventModel)
            .where(OrderEventModel.order_id == str(order_id))
            .order_by(OrderEventModel.occurred_at, OrderEventModel.seq)
        )
        return [
            Event(
                event_id=EventId(model.id),
                restaurant_id=RestaurantId(model.restaurant_id),
                entity_type=EntityType(model.entity_type),
                entity_id=model.entity_id,
                event_type=EventType(model.event_type),
                old_value=model.old_value,
                new_value=model.new_value,
                actor_id=StaffId(model.actor_id),
                occurred_at=as_utc(model.occurred_at),
                order_id=OrderId(model.order_id) if model.order_id is not None else None,
            )
            for model in self._session.execute(statement).scalars()
        ]
