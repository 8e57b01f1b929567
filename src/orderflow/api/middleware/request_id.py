from __future__ import annotations

from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from orderflow.infrastructure.observability.otel import tag_current_span

REQUEST_ID_HEADER = "X-Request-Id"
ACTOR_ID_HEADER = "X-Actor-Id"
_MAX_REQUEST_ID_LENGTH = 128

request_id_context: ContextVar[str | None] = ContextVar("request_id", default=None)
actor_id_context: ContextVar[str | None] = ContextVar("actor_id", default=None)


def get_request_id() -> str | None:
    return request_id_context.get()


def get_actor_id() -> str | None:
    return actor_id_context.get()


def _incoming_request_id(request: Request) -> str:
    supplied = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if supplied and len(supplied) <= _MAX_REQUEST_ID_LENGTH:
        return supplied
    return str(uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds the request id and the acting staff id for logs, spans and envelopes.

    A caller-supplied ``X-Request-Id`` is kept unless blank or oversized, and
    is echoed back on the response either way.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = _incoming_request_id(request)
        actor_id = (request.headers.get(ACTOR_ID_HEADER) or "").strip() or None
        request_token = request_id_context.set(request_id)
        actor_token = actor_id_context.set(actor_id)
        request.state.request_id = request_id
        tag_current_span(request_id=request_id, actor_id=actor_id)
        try:
            response = await call_next(request)
        finally:
            actor_id_context.reset(actor_token)
            request_id_context.reset(request_token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
