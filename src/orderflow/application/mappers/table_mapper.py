from __future__ import annotations

import re
from collections.abc import Iterable

from orderflow.application.dto.responses import TableResponse, TablesResponse
from orderflow.domain.table.entities import Table

_DIGITS = re.compile(r"(\d+)")


def _label_sort_key(table: Table) -> tuple[object, ...]:
    # "T2" sorts before "T10".
    parts = _DIGITS.split(table.label.casefold())
    return tuple(int(part) if part.isdigit() else part for part in parts)


def to_table_response(table: Table) -> TableResponse:
    return TableResponse(
        tableId=str(table.table_id),
        restaurantId=str(table.restaurant_id),
        label=table.label,
        status=table.status.value,
        updatedAt=table.updated_at,
    )


def to_tables_response(tables: Iterable[Table]) -> TablesResponse:
    ordered = sorted(tables, key=_label_sort_key)
    return TablesResponse(tables=[to_table_response(table) for table in ordered])
