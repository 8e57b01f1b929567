from __future__ import annotations

from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from orderflow.api.middleware.request_id import get_request_id
from orderflow.application.errors import (
    FulfillmentError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    OrderConflictError,
    OrderNotModifiableError,
    PermissionDeniedError,
    TableNotFreeError,
)


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": jsonable_encoder(details or {}),
            },
            "requestId": get_request_id(),
        },
    )


def _exception_handler(status_code: int):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        error = cast(FulfillmentError, exc)
        return _error_response(
            status_code=status_code,
            code=error.code,
            message=str(error),
            details=error.details,
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    code = "HTTP_ERROR"
    if http_exc.status_code == 404:
        code = "NOT_FOUND"
    elif http_exc.status_code == 400:
        code = "BAD_REQUEST"
    elif http_exc.status_code == 405:
        code = "METHOD_NOT_ALLOWED"
    return _error_response(
        status_code=http_exc.status_code,
        code=code,
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code=InvalidInputError.code,
        message="request validation failed",
        details={"errors": validation_exc.errors()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    # Handlers resolve along the exception's MRO, so subclasses inherit these statuses.
    mappings: list[tuple[type[FulfillmentError], int]] = [
        (InvalidInputError, 400),
        (PermissionDeniedError, 403),
        (NotFoundError, 404),
        (InvalidTransitionError, 409),
        (OrderNotModifiableError, 409),
        (TableNotFreeError, 409),
        (OrderConflictError, 409),
        (FulfillmentError, 400),
    ]

    for exc_cls, status_code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
