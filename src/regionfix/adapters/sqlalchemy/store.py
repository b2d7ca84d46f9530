"""Region store backed by a single SQLAlchemy connection."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy import column, distinct, func, inspect, select, table, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from regionfix.domain import (
    DatabaseConnectionError,
    NoValidRegionError,
    Region,
    RegionReference,
    UpdateFailure,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator

    from sqlalchemy import ColumnElement, Connection, TableClause

    from regionfix.domain import RegionId


class SqlAlchemyRegionStore:
    """``RegionStore`` implementation issuing Core statements on one connection.

    Table and column names come from configuration, so statements are built
    from lightweight ``table()``/``column()`` clauses and the dialect quotes
    reserved names such as ``order``. Each ``replace_references`` call runs in
    its own transaction; reads run in whatever transaction autobegins.
    """

    def __init__(
        self,
        connection: Connection,
        *,
        region_table: str = "region",
        schema: str | None = None,
    ) -> None:
        self.connection = connection
        self.schema = schema
        self._region = table(
            region_table,
            column("id"),
            column("name"),
            column("currency_code"),
            column("deleted_at"),
            schema=schema,
        )

    @property
    def region_table(self) -> str:
        return self._region.name

    def list_valid_regions(self) -> list[Region]:
        if not self.has_table(self.region_table):
            raise NoValidRegionError(self.region_table)
        region = self._region
        stmt = (
            select(region.c.id, region.c.name, region.c.currency_code)
            .where(region.c.deleted_at.is_(None))
            .order_by(region.c.id)
        )
        with self._read_errors():
            rows = self.connection.execute(stmt).all()
        return [
            Region(id=str(row.id), name=row.name, currency_code=row.currency_code)
            for row in rows
        ]

    def has_table(self, table_name: str) -> bool:
        with self._statement_errors(RegionReference(table=table_name)):
            return inspect(self.connection).has_table(table_name, schema=self.schema)

    def has_column(self, table_name: str, column_name: str) -> bool:
        with self._statement_errors(RegionReference(table=table_name, column=column_name)):
            columns = inspect(self.connection).get_columns(table_name, schema=self.schema)
        return any(info["name"] == column_name for info in columns)

    def find_unmatched_region_ids(self, reference: RegionReference) -> set[RegionId]:
        target, ref_column = self._reference_clause(reference)
        stmt = select(distinct(ref_column)).select_from(target).where(self._dangling(ref_column))
        with self._statement_errors(reference):
            values = self.connection.execute(stmt).scalars().all()
        return {str(value) for value in values}

    def count_dangling_references(self, reference: RegionReference) -> int:
        target, ref_column = self._reference_clause(reference)
        stmt = select(func.count()).select_from(target).where(self._dangling(ref_column))
        with self._statement_errors(reference):
            return int(self.connection.execute(stmt).scalar_one())

    def count_references(self, reference: RegionReference, region_ids: Collection[RegionId]) -> int:
        if not region_ids:
            return 0
        target, ref_column = self._reference_clause(reference)
        stmt = select(func.count()).select_from(target).where(ref_column.in_(sorted(region_ids)))
        with self._statement_errors(reference):
            return int(self.connection.execute(stmt).scalar_one())

    def replace_references(
        self,
        reference: RegionReference,
        dangling_ids: Collection[RegionId],
        replacement_id: RegionId,
    ) -> int:
        target, ref_column = self._reference_clause(reference)
        updated = 0
        with self._statement_errors(reference), self._transaction():
            for dangling_id in sorted(dangling_ids):
                stmt = (
                    update(target)
                    .where(ref_column == dangling_id)
                    .values({ref_column: replacement_id})
                )
                result = self.connection.execute(stmt)
                updated += max(result.rowcount, 0)
        return updated

    def _reference_clause(
        self, reference: RegionReference
    ) -> tuple[TableClause, ColumnElement[str]]:
        target = table(reference.table, column(reference.column), schema=self.schema)
        return target, target.c[reference.column]

    def _dangling(self, ref_column: ColumnElement[str]) -> ColumnElement[bool]:
        region = self._region
        valid_ids = select(region.c.id).where(region.c.deleted_at.is_(None))
        return ref_column.is_not(None) & ref_column.not_in(valid_ids)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        # end the autobegun read transaction so the writes get their own
        if self.connection.in_transaction():
            self.connection.commit()
        with self.connection.begin():
            yield

    @contextmanager
    def _statement_errors(self, reference: RegionReference) -> Iterator[None]:
        try:
            yield
        except DBAPIError as exc:
            _raise_if_disconnected(exc)
            self.connection.rollback()
            raise UpdateFailure(reference, _error_text(exc)) from exc
        except SQLAlchemyError as exc:
            self.connection.rollback()
            raise UpdateFailure(reference, _error_text(exc)) from exc

    @contextmanager
    def _read_errors(self) -> Iterator[None]:
        try:
            yield
        except DBAPIError as exc:
            _raise_if_disconnected(exc)
            raise


def _raise_if_disconnected(exc: DBAPIError) -> None:
    if exc.connection_invalidated:
        raise DatabaseConnectionError(f"Lost database connection: {_error_text(exc)}") from exc


def _error_text(exc: SQLAlchemyError) -> str:
    original = getattr(exc, "orig", None)
    text = str(original if original is not None else exc).strip()
    if not text:
        return type(exc).__name__
    return text.splitlines()[0]
