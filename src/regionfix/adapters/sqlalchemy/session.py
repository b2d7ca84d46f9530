"""Connection lifecycle for a single reconciliation run."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import ArgumentError, DBAPIError, NoSuchModuleError

from regionfix.config import ConfigurationError, DatabaseConfig, get_database_config
from regionfix.domain import DatabaseConnectionError

from .store import SqlAlchemyRegionStore

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class SessionStateError(RuntimeError):
    """Raised when a session is used outside its ``with`` block."""


def build_engine(database_uri: str | None = None) -> Engine:
    """Create an engine for ``database_uri`` (defaults to the configured database)."""

    config = DatabaseConfig(uri=database_uri) if database_uri else get_database_config()
    log.info("Using database %s", config.redacted())
    try:
        return create_engine(config.uri, future=True, pool_pre_ping=True)
    except (ArgumentError, NoSuchModuleError) as exc:
        raise ConfigurationError(f"Invalid database URI: {exc}") from exc


class SqlAlchemyRegionSession:
    """Own one connection for the duration of a ``with`` block.

    The connection is closed on every exit path. Pending work is committed on
    a clean exit and rolled back when the block raises. An engine created by
    the session is disposed on exit; an engine passed in is left to its owner.
    """

    def __init__(
        self,
        *,
        engine: Engine | None = None,
        database_uri: str | None = None,
        region_table: str = "region",
        schema: str | None = None,
    ) -> None:
        self._owns_engine = engine is None
        self.engine: Engine = engine or build_engine(database_uri)
        self.region_table = region_table
        self.schema = schema
        self._connection: Connection | None = None
        self._store: SqlAlchemyRegionStore | None = None

    def __enter__(self) -> SqlAlchemyRegionSession:
        if self._connection is not None:
            raise SessionStateError("Session already open")
        try:
            self._connection = self.engine.connect()
        except DBAPIError as exc:
            self._dispose()
            location = self.engine.url.render_as_string(hide_password=True)
            raise DatabaseConnectionError(f"Could not connect to {location}: {exc.orig}") from exc
        self._store = SqlAlchemyRegionStore(
            self._connection,
            region_table=self.region_table,
            schema=self.schema,
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        connection = self._connection
        try:
            if connection is not None and connection.in_transaction():
                if exc_type is None:
                    connection.commit()
                else:
                    connection.rollback()
        finally:
            if connection is not None:
                connection.close()
            self._connection = None
            self._store = None
            self._dispose()
        return False

    @property
    def store(self) -> SqlAlchemyRegionStore:
        if self._store is None:
            raise SessionStateError("Session not open")
        return self._store

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise SessionStateError("Session not open")
        return self._connection

    def _dispose(self) -> None:
        if self._owns_engine:
            self.engine.dispose()
