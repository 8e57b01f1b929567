from __future__ import annotations

from types import TracebackType

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from orderflow.application.ports.repositories import UnitOfWork
from orderflow.infrastructure.db.repositories.event_repo import SqlAlchemyEventLog
from orderflow.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuCatalog
from orderflow.infrastructure.db.repositories.order_repo import (
    SqlAlchemyOrderItemRepository,
    SqlAlchemyOrderRepository,
)
from orderflow.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from orderflow.infrastructure.db.session import get_engine


class SqlAlchemyUnitOfWork(UnitOfWork):
    """One ``Session`` (and so one transaction) shared by every repository."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        session = Session(self._engine, expire_on_commit=False)
        self._session = session
        self.orders = SqlAlchemyOrderRepository(session)
        self.items = SqlAlchemyOrderItemRepository(session)
        self.tables = SqlAlchemyTableRepository(session)
        self.events = SqlAlchemyEventLog(session)
        self.catalog = SqlAlchemyMenuCatalog(session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._session is None:
            return
        try:
            self._session.rollback()
        finally:
            self._session.close()
            self._session = None

    def commit(self) -> None:
        if self._session is None:
            raise RuntimeError("unit of work is not active")
        self._session.commit()
