from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orderflow.api import dependencies
from orderflow.api.error_handling import register_exception_handlers
from orderflow.api.middleware.access_log import AccessLogMiddleware
from orderflow.api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from orderflow.api.routes import health, kitchen, metrics, order_items, orders, tables
from orderflow.api.ws import routes as ws_routes
from orderflow.api.ws.manager import ConnectionManager
from orderflow.infrastructure.messaging.redis_event_listener import start_redis_fanout
from orderflow.infrastructure.observability.logging_config import configure_logging
from orderflow.infrastructure.observability.otel import configure_otel

_ROUTE_MODULES = (health, metrics, orders, order_items, tables, kitchen, ws_routes)


def _cors_allow_origins() -> list[str]:
    if os.getenv("APP_ENV", "dev").lower() in {"dev", "test"}:
        return ["*"]
    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Owns the websocket registry and the Redis fan-out task for the process."""
    app.state.ws_manager = ConnectionManager()
    # Without a database there is no board to snapshot; events are still relayed.
    if os.getenv("DATABASE_URL"):
        app.state.kitchen_snapshot = dependencies.kitchen_snapshot

    fanout_task = asyncio.create_task(start_redis_fanout(app.state))
    app.state.redis_fanout_task = fanout_task
    try:
        yield
    finally:
        fanout_task.cancel()
        with suppress(asyncio.CancelledError):
            await fanout_task


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Orderflow", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)
    for module in _ROUTE_MODULES:
        app.include_router(module.router)

    # Last added runs first: CORS, then request id binding, then access logging.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    configure_otel(app)
    return app


app = create_app()
