from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Engine, inspect
from sqlalchemy.orm import Session

from orderflow.application.authorization import ROLE_CAPABILITIES
from orderflow.infrastructure.db.models.catalog import MenuItemModel, RestaurantModel
from orderflow.infrastructure.db.models.staff import RolePermissionModel, StaffModel
from orderflow.infrastructure.db.models.table import TableModel
from orderflow.infrastructure.db.session import get_engine
from orderflow.infrastructure.observability.logging_config import configure_logging

logger = logging.getLogger(__name__)

RESTAURANT_ID = "rst_001"

MENU_ITEMS = [
    {"id": "itm_001", "name": "Margherita Pizza", "prep_time_minutes": 12, "is_available": True},
    {"id": "itm_002", "name": "Chicken Alfredo", "prep_time_minutes": 15, "is_available": True},
    {"id": "itm_003", "name": "Caesar Salad", "prep_time_minutes": 5, "is_available": True},
    {"id": "itm_004", "name": "Tiramisu", "prep_time_minutes": None, "is_available": False},
]

TABLES = [
    {"id": "tbl_001", "label": "T1"},
    {"id": "tbl_002", "label": "T2"},
    {"id": "tbl_003", "label": "T3"},
    {"id": "tbl_004", "label": "Patio 1"},
]

STAFF = [
    {"id": "stf_owner", "role": "OWNER"},
    {"id": "stf_manager", "role": "MANAGER"},
    {"id": "stf_waiter", "role": "WAITER"},
    {"id": "stf_waiter_2", "role": "WAITER"},
    {"id": "stf_kitchen", "role": "KITCHEN"},
]

# A second branch with its own staff; nothing else is shared with RESTAURANT_ID.
UPTOWN_RESTAURANT_ID = "rst_002"
UPTOWN_STAFF = [
    {"id": "stf_uptown_manager", "role": "MANAGER"},
]

_REQUIRED_TABLES = {"restaurants", "menu_items", "tables", "staff", "role_permissions"}


def seed(engine: Engine) -> bool:
    if not _REQUIRED_TABLES.issubset(set(inspect(engine).get_table_names())):
        return False

    now = datetime.now(timezone.utc)
    with Session(engine) as session:
        session.merge(RestaurantModel(id=RESTAURANT_ID, name="Downtown Test Kitchen"))
        session.merge(RestaurantModel(id=UPTOWN_RESTAURANT_ID, name="Uptown Test Kitchen"))
        session.flush()

        for item in MENU_ITEMS:
            session.merge(MenuItemModel(restaurant_id=RESTAURANT_ID, **item))
        for table in TABLES:
            session.merge(
                TableModel(restaurant_id=RESTAURANT_ID, status="FREE", updated_at=now, **table)
            )
        for member in STAFF:
            session.merge(StaffModel(restaurant_id=RESTAURANT_ID, **member))
        for member in UPTOWN_STAFF:
            session.merge(StaffModel(restaurant_id=UPTOWN_RESTAURANT_ID, **member))
        for role, capabilities in ROLE_CAPABILITIES.items():
            for capability in sorted(capabilities):
                session.merge(RolePermissionModel(role=role, capability=capability))

        session.commit()
    return True


def main() -> None:
    configure_logging()
    if seed(get_engine(timeout_seconds=2.0)):
        logger.info("seed_complete", extra={"restaurant_id": RESTAURANT_ID})
    else:
        logger.warning("seed_skipped_no_schema")


if __name__ == "__main__":
    main()
