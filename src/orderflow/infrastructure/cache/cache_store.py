from __future__ import annotations

from orderflow.application.ports.services import CacheStore
from orderflow.infrastructure.cache.redis_client import get_redis_client

KEY_NAMESPACE = "orderflow"


class RedisCacheStore(CacheStore):
    """Capability cache entries under ``orderflow:<key>`` with Redis-side expiry."""

    def __init__(self, timeout_seconds: float = 1.0, namespace: str = KEY_NAMESPACE) -> None:
        self._timeout_seconds = timeout_seconds
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    def _client(self):
        return get_redis_client(timeout_seconds=self._timeout_seconds)

    def get(self, key: str) -> str | None:
        value = self._client().get(self._key(key))
        return None if value is None else str(value)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            self.delete(key)
            return
        self._client().set(self._key(key), value, ex=ttl_seconds)

    def delete(self, key: str) -> None:
        self._client().delete(self._key(key))
