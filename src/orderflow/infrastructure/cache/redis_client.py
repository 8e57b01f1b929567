from __future__ import annotations

import os
from functools import lru_cache

import redis
from redis import asyncio as redis_asyncio

_HEALTH_CHECK_INTERVAL_SECONDS = 30


def redis_url() -> str | None:
    return os.getenv("REDIS_URL") or None


def _require_url() -> str:
    url = redis_url()
    if url is None:
        raise RuntimeError("REDIS_URL is not set")
    return url


@lru_cache(maxsize=8)
def _build_client(url: str, timeout_seconds: float) -> redis.Redis:
    return redis.Redis.from_url(
        url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        health_check_interval=_HEALTH_CHECK_INTERVAL_SECONDS,
        decode_responses=True,
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    """Process-wide client shared by the capability cache and the publisher."""
    return _build_client(_require_url(), timeout_seconds)


def create_async_client(url: str) -> redis_asyncio.Redis:
    # Pub/sub connections block on reads, so no socket timeout here.
    return redis_asyncio.from_url(
        url,
        health_check_interval=_HEALTH_CHECK_INTERVAL_SECONDS,
        decode_responses=True,
    )


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except Exception:
        return False
