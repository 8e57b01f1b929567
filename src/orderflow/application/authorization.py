from __future__ import annotations

import json
import logging
import os

from orderflow.application.errors import PermissionDeniedError
from orderflow.application.ports.repositories import StaffDirectory
from orderflow.application.ports.services import Authorizer, CacheStore
from orderflow.domain.common.ids import RestaurantId, StaffId

logger = logging.getLogger(__name__)


class Capability:
    ORDER_VIEW = "order.view"
    ORDER_CREATE = "order.create"
    ORDER_UPDATE = "order.update"
    ORDER_VOID = "order.void"
    ORDER_TRANSFER = "order.transfer"
    TABLE_VIEW = "table.view"
    TABLE_UPDATE_STATUS = "table.update_status"


ALL_CAPABILITIES = frozenset(
    value for name, value in vars(Capability).items() if not name.startswith("_")
)

OWNER_ROLE = "OWNER"

# Seed matrix written by tools/seed.py; the staff directory stays authoritative.
ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "MANAGER": ALL_CAPABILITIES,
    "CAPTAIN": ALL_CAPABILITIES,
    "WAITER": frozenset(
        {
            Capability.ORDER_VIEW,
            Capability.ORDER_CREATE,
            Capability.ORDER_UPDATE,
            Capability.TABLE_VIEW,
        }
    ),
    "KITCHEN": frozenset({Capability.ORDER_VIEW, Capability.ORDER_UPDATE}),
}


def role_capabilities_cache_key(role: str) -> str:
    return f"caps:{role}"


def capability_cache_ttl_seconds() -> int:
    return int(os.getenv("CAPABILITY_CACHE_TTL_SECONDS", "60"))


class RoleBasedAuthorizer(Authorizer):
    """Resolves actor -> role -> capabilities.

    Capability sets are cached per role in the injected store; the cache is
    best-effort and a failing store falls through to the staff directory.
    """

    def __init__(
        self,
        staff_directory: StaffDirectory,
        cache: CacheStore,
        ttl_seconds: int | None = None,
    ) -> None:
        self._staff_directory = staff_directory
        self._cache = cache
        self._ttl_seconds = ttl_seconds if ttl_seconds is not None else capability_cache_ttl_seconds()

    def _cache_get(self, key: str) -> str | None:
        try:
            return self._cache.get(key)
        except Exception:
            logger.warning("capability_cache_unavailable", extra={"cache_key": key})
            return None

    def _cache_set(self, key: str, value: str) -> None:
        try:
            self._cache.set(key, value, ttl_seconds=self._ttl_seconds)
        except Exception:
            logger.warning("capability_cache_unavailable", extra={"cache_key": key})

    def capabilities_for_role(self, role: str) -> set[str]:
        key = role_capabilities_cache_key(role)
        cached = self._cache_get(key)
        if cached is not None:
            try:
                return set(json.loads(cached))
            except (TypeError, ValueError):
                pass

        capabilities = self._staff_directory.get_role_capabilities(role)
        self._cache_set(key, json.dumps(sorted(capabilities)))
        return set(capabilities)

    def invalidate_role(self, role: str) -> None:
        try:
            self._cache.delete(role_capabilities_cache_key(role))
        except Exception:
            logger.warning("capability_cache_unavailable", extra={"role": role})

    def is_allowed(self, actor_id: StaffId, capability: str) -> bool:
        role = self._staff_directory.get_role(actor_id)
        if role is None:
            return False
        if role == OWNER_ROLE:
            return True
        return capability in self.capabilities_for_role(role)

    def belongs_to(self, actor_id: StaffId, restaurant_id: RestaurantId) -> bool:
        # Owners are scoped to their own restaurant like everyone else.
        return self._staff_directory.get_restaurant(actor_id) == restaurant_id


def require(
    authorizer: Authorizer,
    actor_id: StaffId,
    capability: str,
    restaurant_id: RestaurantId | None = None,
) -> None:
    if not authorizer.is_allowed(actor_id, capability):
        raise PermissionDeniedError(
            f"actor {actor_id} lacks capability {capability}",
            actor_id=str(actor_id),
            capability=capability,
        )
    if restaurant_id is not None:
        require_membership(authorizer, actor_id, restaurant_id)


def require_membership(
    authorizer: Authorizer,
    actor_id: StaffId,
    restaurant_id: RestaurantId,
) -> None:
    """Rejects actors acting on another restaurant's orders or tables."""
    if not authorizer.belongs_to(actor_id, restaurant_id):
        raise PermissionDeniedError(
            f"actor {actor_id} does not belong to restaurant {restaurant_id}",
            actor_id=str(actor_id),
            restaurant_id=str(restaurant_id),
        )
