from __future__ import annotations

from orderflow.application.dto.responses import EventResponse, OrderEventsResponse
from orderflow.domain.common.ids import OrderId
from orderflow.domain.order.events import Event


def to_event_response(event: Event) -> EventResponse:
    return EventResponse(
        eventId=str(event.event_id),
        entityType=event.entity_type.value,
        entityId=event.entity_id,
        orderId=str(event.order_id) if event.order_id is not None else None,
        eventType=event.event_type.value,
        oldValue=event.old_value,
        newValue=event.new_value,
        actorId=str(event.actor_id),
        occurredAt=event.occurred_at,
    )


def to_order_events_response(order_id: OrderId, events: list[Event]) -> OrderEventsResponse:
    return OrderEventsResponse(
        orderId=str(order_id),
        events=[to_event_response(event) for event in events],
    )
