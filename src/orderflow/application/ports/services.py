from __future__ import annotations

from typing import Protocol

from orderflow.domain.common.ids import RestaurantId, StaffId


class Authorizer(Protocol):
    def is_allowed(self, actor_id: StaffId, capability: str) -> bool: ...

    def belongs_to(self, actor_id: StaffId, restaurant_id: RestaurantId) -> bool: ...


class CacheStore(Protocol):
    """String key/value store with per-key expiry.

    Implementations may raise on connectivity problems; callers treat the
    cache as optional and fall back to the source of truth.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class EventPublisher(Protocol):
    """Fire-and-forget fan-out of serialized envelopes to ``channel``."""

    def publish(self, channel: str, message: str) -> None: ...
