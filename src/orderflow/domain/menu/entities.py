from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.common.ids import MenuItemId, RestaurantId


@dataclass(frozen=True)
class CatalogItem:
    item_id: MenuItemId
    restaurant_id: RestaurantId
    name: str
    prep_time_minutes: int | None
    is_available: bool

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        if self.prep_time_minutes is not None and self.prep_time_minutes < 0:
            raise ValueError("prep_time_minutes must be >= 0")
