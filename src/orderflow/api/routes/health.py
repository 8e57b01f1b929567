from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response, status

from orderflow.infrastructure.cache.redis_client import ping_redis
from orderflow.infrastructure.db.session import ping_database

router = APIRouter()
logger = logging.getLogger(__name__)

_CHECK_TIMEOUT_SECONDS = 1.0


def _fanout_state(request: Request) -> str:
    task = getattr(request.app.state, "redis_fanout_task", None)
    if task is None:
        return "not_started"
    return "stopped" if task.done() else "running"


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(request: Request, response: Response) -> dict[str, object]:
    """Database and Redis must both answer; the fan-out state is informational."""
    checks = {
        "database": ping_database(timeout_seconds=_CHECK_TIMEOUT_SECONDS),
        "redis": ping_redis(timeout_seconds=_CHECK_TIMEOUT_SECONDS),
    }
    body: dict[str, object] = {"status": "ok", "checks": checks, "fanout": _fanout_state(request)}

    if not all(checks.values()):
        failed = sorted(name for name, ok in checks.items() if not ok)
        logger.warning("readiness_check_failed", extra={"operation": ",".join(failed)})
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        body["status"] = "unavailable"
    return body
