from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy import delete, update
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from orderflow.api import dependencies
from orderflow.application.authorization import RoleBasedAuthorizer
from orderflow.infrastructure.db import session as db_session
from orderflow.infrastructure.db.models.order import OrderEventModel, OrderItemModel, OrderModel
from orderflow.infrastructure.db.models.table import TableModel
from orderflow.infrastructure.db.repositories.staff_repo import SqlAlchemyStaffDirectory

BACKEND_DIR = Path(__file__).resolve().parents[2]


class RecordingPublisher:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def publish(self, channel: str, message: str) -> None:
        self.messages.append((channel, message))


class DictCache:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


@pytest.fixture(scope="session", autouse=True)
def integration_environment(tmp_path_factory: pytest.TempPathFactory) -> Iterator[None]:
    database_path = tmp_path_factory.mktemp("db") / "orderflow.sqlite3"
    os.environ["DATABASE_URL"] = f"sqlite:///{database_path}"
    os.environ.setdefault("OTEL_SERVICE_NAME", "orderflow-test")
    os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "")

    db_session._build_engine.cache_clear()

    env = os.environ.copy()
    env["PYTHONPATH"] = f"{BACKEND_DIR / 'src'}{os.pathsep}{env.get('PYTHONPATH', '')}".rstrip(
        os.pathsep
    )

    subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", "upgrade", "head"],
        cwd=BACKEND_DIR,
        env=env,
        check=True,
    )
    subprocess.run(
        [sys.executable, "-m", "orderflow.tools.seed"],
        cwd=BACKEND_DIR,
        env=env,
        check=True,
    )
    yield
    db_session._build_engine.cache_clear()


@pytest.fixture(autouse=True)
def clean_orders() -> Iterator[None]:
    yield
    with Session(db_session.get_engine()) as session:
        session.execute(delete(OrderEventModel))
        session.execute(delete(OrderItemModel))
        session.execute(delete(OrderModel))
        session.execute(update(TableModel).values(status="FREE"))
        session.commit()


@pytest.fixture
def publisher(monkeypatch) -> RecordingPublisher:
    recorder = RecordingPublisher()
    cache = DictCache()
    monkeypatch.setattr(dependencies, "publisher", lambda: recorder)
    monkeypatch.setattr(
        dependencies,
        "authorizer",
        lambda: RoleBasedAuthorizer(SqlAlchemyStaffDirectory(), cache, ttl_seconds=60),
    )
    return recorder
