from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from orderflow.application.ports.repositories import TableRepository
from orderflow.domain.common.ids import RestaurantId, TableId
from orderflow.domain.table.entities import Table, TableStatus
from orderflow.infrastructure.db.models.table import TableModel
from orderflow.infrastructure.db.repositories._time import as_utc


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, table_id: TableId, restaurant_id: RestaurantId) -> Table | None:
        statement = (
            select(TableModel)
            .where(
                TableModel.id == str(table_id),
                TableModel.restaurant_id == str(restaurant_id),
            )
            .execution_options(populate_existing=True)
        )
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def list_for_restaurant(self, restaurant_id: RestaurantId) -> list[Table]:
        statement = (
            select(TableModel)
            .where(TableModel.restaurant_id == str(restaurant_id))
            .order_by(TableModel.label, TableModel.id)
            .execution_options(populate_existing=True)
        )
        return [self._to_domain(model) for model in self._session.execute(statement).scalars()]

    def save_with_status(self, table: Table, expected_status: TableStatus) -> bool:
        statement = (
            update(TableModel)
            .where(
                TableModel.id == str(table.table_id),
                TableModel.restaurant_id == str(table.restaurant_id),
                TableModel.status == expected_status.value,
            )
            .values(status=table.status.value, updated_at=table.updated_at)
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(statement).rowcount == 1

    def _to_domain(self, model: TableModel) -> Table:
        return Table(
            table_id=TableId(model.id),
            restaurant_id=RestaurantId(model.restaurant_id),
            label=model.label,
            status=TableStatus(model.status),
            updated_at=as_utc(model.updated_at),
        )
