from __future__ import annotations

from enum import Enum
from typing import TypeVar

from orderflow.application.errors import InvalidInputError
from orderflow.application.ports.services import Authorizer
from orderflow.domain.common.ids import RestaurantId, StaffId

E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: type[E], value: str, field: str) -> E:
    try:
        return enum_cls(value.strip().upper())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(
            f"{field} must be one of {allowed}",
            field=field,
            attempted=value,
        ) from exc


def require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise InvalidInputError(f"{field} must be non-empty", field=field)
    return value.strip()


def require_staff_of(
    authorizer: Authorizer,
    staff_id: StaffId,
    restaurant_id: RestaurantId,
    field: str = "staffId",
) -> None:
    if not authorizer.belongs_to(staff_id, restaurant_id):
        raise InvalidInputError(
            f"{field} {staff_id} is not staff of restaurant {restaurant_id}",
            field=field,
            attempted=str(staff_id),
        )
