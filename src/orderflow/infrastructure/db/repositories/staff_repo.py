from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from orderflow.application.ports.repositories import StaffDirectory
from orderflow.domain.common.ids import RestaurantId, StaffId
from orderflow.infrastructure.db.models.staff import RolePermissionModel, StaffModel
from orderflow.infrastructure.db.session import get_engine


class SqlAlchemyStaffDirectory(StaffDirectory):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_role(self, staff_id: StaffId) -> str | None:
        statement = select(StaffModel.role).where(StaffModel.id == str(staff_id))
        with Session(self._engine) as session:
            return session.execute(statement).scalar_one_or_none()

    def get_restaurant(self, staff_id: StaffId) -> RestaurantId | None:
        statement = select(StaffModel.restaurant_id).where(StaffModel.id == str(staff_id))
        with Session(self._engine) as session:
            restaurant_id = session.execute(statement).scalar_one_or_none()
        return RestaurantId(restaurant_id) if restaurant_id is not None else None

    def get_role_capabilities(self, role: str) -> set[str]:
        statement = select(RolePermissionModel.capability).where(RolePermissionModel.role == role)
        with Session(self._engine) as session:
            return set(session.execute(statement).scalars().all())
