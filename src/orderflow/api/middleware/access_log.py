from __future__ import annotations

import logging
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("orderflow.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

# Health check traffic is counted but only logged at debug level.
QUIET_PATHS = frozenset({"/health/live", "/health/ready", "/metrics"})


def route_path(request: Request) -> str:
    """Templated route path, e.g. ``/v1/orders/{order_id}``, for metric labels."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _record(request: Request, status_code: int, started: float, failed: bool = False) -> None:
    duration_seconds = time.perf_counter() - started
    path = route_path(request)
    REQUEST_COUNT.labels(method=request.method, path=path, status_code=str(status_code)).inc()
    REQUEST_LATENCY.labels(method=request.method, path=path).observe(duration_seconds)

    extra = {
        "method": request.method,
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_seconds * 1000, 2),
    }
    if failed:
        logger.exception("request_error", extra=extra)
    elif status_code >= 500:
        logger.error("request_complete", extra=extra)
    elif path in QUIET_PATHS:
        logger.debug("request_complete", extra=extra)
    else:
        logger.info("request_complete", extra=extra)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            _record(request, 500, started, failed=True)
            raise
        _record(request, response.status_code, started)
        return response
