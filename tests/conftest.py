from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from regionfix.adapters.sqlalchemy import SqlAlchemyRegionSession, SqlAlchemyRegionStore
from regionfix.config import ReconcileSettings
from tests.helpers.commerce_schema import create_schema, seed_regions, standard_regions
from tests.helpers.region_store import references

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "DATABASE_URI",
        "DATABASE_URL",
        "DB_HOST",
        "DB_PORT",
        "DB_NAME",
        "DB_USER",
        "DB_PASSWORD",
        "REGIONFIX_SEED_REGION_IDS",
        "REGIONFIX_PREFERRED_CURRENCY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    create_schema(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def seeded_engine(sqlite_engine: Engine) -> Engine:
    with sqlite_engine.begin() as connection:
        seed_regions(connection, standard_regions())
    return sqlite_engine


@pytest.fixture
def sqlite_connection(seeded_engine: Engine) -> Iterator[Connection]:
    connection = seeded_engine.connect()
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture
def sqlite_store(sqlite_connection: Connection) -> SqlAlchemyRegionStore:
    return SqlAlchemyRegionStore(sqlite_connection)


@pytest.fixture
def commerce_settings() -> ReconcileSettings:
    return ReconcileSettings(
        references=references(
            "cart",
            "customer",
            "order",
            "payment_session",
            "shipping_option",
            "gift_card",
        ),
    )


@pytest.fixture
def session_factory(
    seeded_engine: Engine,
) -> Callable[[ReconcileSettings], SqlAlchemyRegionSession]:
    def factory(settings: ReconcileSettings) -> SqlAlchemyRegionSession:
        return SqlAlchemyRegionSession(
            engine=seeded_engine,
            region_table=settings.region_table,
            schema=settings.schema,
        )

    return factory
