from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from orderflow.domain.common.ids import RestaurantId, TableId


class TableStatus(str, Enum):
    FREE = "FREE"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"


@dataclass(frozen=True)
class Table:
    table_id: TableId
    restaurant_id: RestaurantId
    label: str
    status: TableStatus
    updated_at: datetime

    def __post_init__(self) -> None:
        if not self.label.strip():
            raise ValueError("label must be non-empty")

    def ensure_free(self) -> None:
        if self.status != TableStatus.FREE:
            raise TableUnavailableError(self.table_id, self.status)

    def occupy(self, now: datetime) -> Table:
        self.ensure_free()
        return replace(self, status=TableStatus.OCCUPIED, updated_at=now)

    def release(self, now: datetime) -> Table:
        if self.status == TableStatus.FREE:
            return self
        return replace(self, status=TableStatus.FREE, updated_at=now)

    def with_status(self, status: TableStatus, now: datetime) -> Table:
        if status == self.status:
            return self
        return replace(self, status=status, updated_at=now)


class TableUnavailableError(Exception):
    def __init__(self, table_id: TableId, status: TableStatus) -> None:
        super().__init__(f"table {table_id} is not free (status={status.value})")
        self.table_id = table_id
        self.status = status
