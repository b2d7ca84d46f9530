"""Entities the reconciler reads and writes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from datetime import datetime

RegionId: TypeAlias = str


@dataclass(frozen=True, slots=True)
class Region:
    """A row of the commerce store's region table."""

    id: RegionId
    name: str | None = None
    currency_code: str | None = None
    deleted_at: datetime | None = None

    @property
    def is_valid(self) -> bool:
        return self.deleted_at is None

    def matches_currency(self, currency_code: str) -> bool:
        if self.currency_code is None:
            return False
        return self.currency_code.casefold() == currency_code.casefold()

    def describe(self) -> str:
        label = self.name or self.id
        if self.currency_code:
            return f"{label} ({self.id}, {self.currency_code.lower()})"
        return f"{label} ({self.id})"


@dataclass(frozen=True, slots=True)
class RegionReference:
    """A ``(table, column)`` pair holding a nullable region id."""

    table: str
    column: str = "region_id"

    def __post_init__(self) -> None:
        if not self.table.strip():
            raise ValueError("Region reference table name must not be blank")
        if not self.column.strip():
            raise ValueError("Region reference column name must not be blank")

    def __str__(self) -> str:
        return f"{self.table}.{self.column}"
