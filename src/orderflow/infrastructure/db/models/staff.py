from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from orderflow.infrastructure.db.models.base import Base


class StaffModel(Base):
    __tablename__ = "staff"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    restaurant_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(30), nullable=False)


class RolePermissionModel(Base):
    __tablename__ = "role_permissions"

    role: Mapped[str] = mapped_column(String(30), primary_key=True)
    capability: Mapped[str] = mapped_column(String(50), primary_key=True)
