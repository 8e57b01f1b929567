from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class CreateOrderRequest(CamelBaseModel):
    table_id: str | None = None
    staff_id: str
    serve_policy: str = "PARTIAL"
    customer_name: str | None = None
    customer_phone: str | None = None
    note: str | None = None


class AddOrderItemRequest(CamelBaseModel):
    menu_item_id: str
    quantity: int
    note: str | None = None


class ChangeItemStatusRequest(CamelBaseModel):
    status: str
    idempotent: bool = False


class ChangeOrderStatusRequest(CamelBaseModel):
    status: str


class TransferOrderRequest(CamelBaseModel):
    staff_id: str


class ChangeTableStatusRequest(CamelBaseModel):
    status: str
