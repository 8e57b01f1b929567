from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from orderflow.application.ports.repositories import MenuCatalog
from orderflow.domain.common.ids import MenuItemId, RestaurantId
from orderflow.domain.menu.entities import CatalogItem
from orderflow.infrastructure.db.models.catalog import MenuItemModel


class SqlAlchemyMenuCatalog(MenuCatalog):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_items(
        self,
        restaurant_id: RestaurantId,
        item_ids: Iterable[MenuItemId],
    ) -> dict[MenuItemId, CatalogItem]:
        ids = sorted({str(item_id) for item_id in item_ids})
        if not ids:
            return {}

        statement = select(MenuItemModel).where(
            MenuItemModel.restaurant_id == str(restaurant_id),
            MenuItemModel.id.in_(ids),
        )
        return {
            MenuItemId(model.id): CatalogItem(
                item_id=MenuItemId(model.id),
                restaurant_id=RestaurantId(model.restaurant_id),
                name=model.name,
                prep_time_minutes=model.prep_time_minutes,
                is_available=model.is_available,
            )
            for model in self._session.execute(statement).scalars()
        }
