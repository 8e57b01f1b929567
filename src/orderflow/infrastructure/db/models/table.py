from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from orderflow.infrastructure.db.models.base import Base


class TableModel(Base):
    """Dining table; ``status`` is only written through compare-and-set updates."""

    __tablename__ = "tables"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "label", name="uq_tables_restaurant_label"),
        CheckConstraint(
            "status IN ('FREE', 'OCCUPIED', 'RESERVED')",
            name="ck_tables_status_known",
        ),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    restaurant_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="FREE")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
