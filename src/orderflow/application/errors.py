from __future__ import annotations

from typing import Any


class FulfillmentError(Exception):
    code = "FULFILLMENT_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = {
            key: value for key, value in details.items() if value is not None
        }


class InvalidInputError(FulfillmentError):
    code = "VALIDATION_ERROR"


class MenuItemUnavailableError(InvalidInputError):
    code = "MENU_ITEM_UNAVAILABLE"


class NotFoundError(FulfillmentError):
    code = "NOT_FOUND"


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"


class OrderItemNotFoundError(NotFoundError):
    code = "ORDER_ITEM_NOT_FOUND"


class TableNotFoundError(NotFoundError):
    code = "TABLE_NOT_FOUND"


class InvalidTransitionError(FulfillmentError):
    code = "INVALID_TRANSITION"

    def __init__(self, message: str, kind: str, **details: Any) -> None:
        super().__init__(message, **details)
        self.code = f"INVALID_{kind.upper()}_TRANSITION"


class OrderNotModifiableError(FulfillmentError):
    code = "ORDER_NOT_MODIFIABLE"


class TableNotFreeError(FulfillmentError):
    code = "TABLE_NOT_FREE"


class PermissionDeniedError(FulfillmentError):
    code = "PERMISSION_DENIED"


class OrderConflictError(FulfillmentError):
    code = "CONFLICT"
