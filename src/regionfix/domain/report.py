"""In-memory results of reconciliation and audit runs.

Reports are never persisted. The CLI renders them with ``summary_lines`` and
the exit code is derived from ``failures``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import RegionId, RegionReference


class TableStatus(StrEnum):
    UPDATED = "updated"
    TABLE_NOT_FOUND = "table not found"
    COLUMN_NOT_FOUND = "column not found"
    ERROR = "error processing"

    @property
    def is_skip(self) -> bool:
        return self is not TableStatus.UPDATED


@dataclass(frozen=True, slots=True)
class TableOutcome:
    """What happened to one configured region reference."""

    reference: RegionReference
    status: TableStatus
    rows: int = 0
    error: str | None = None

    @property
    def table(self) -> str:
        return self.reference.table

    def describe(self, *, verb: str = "updated") -> str:
        if self.status is TableStatus.UPDATED:
            return f"{self.table}: {self.rows} {verb}"
        if self.status is TableStatus.ERROR and self.error:
            return f"{self.table}: skipped ({self.status}: {self.error})"
        return f"{self.table}: skipped ({self.status})"


@dataclass(slots=True)
class ReconciliationReport:
    """Outcome of rewriting dangling region references."""

    replacement_id: RegionId
    dangling_ids: tuple[RegionId, ...]
    dry_run: bool = False
    outcomes: list[TableOutcome] = field(default_factory=list)

    def record(self, outcome: TableOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def total_rows_updated(self) -> int:
        return sum(outcome.rows for outcome in self.outcomes)

    @property
    def rows_by_table(self) -> dict[str, int]:
        return {
            outcome.table: outcome.rows
            for outcome in self.outcomes
            if outcome.status is TableStatus.UPDATED
        }

    @property
    def skipped(self) -> list[TableOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status.is_skip]

    @property
    def failures(self) -> list[TableOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is TableStatus.ERROR]

    def outcome_for(self, table: str) -> TableOutcome | None:
        for outcome in self.outcomes:
            if outcome.table == table:
                return outcome
        return None

    def summary_lines(self) -> list[str]:
        verb = "would be updated" if self.dry_run else "updated"
        header = "Dry run: no rows modified" if self.dry_run else "Region references reconciled"
        dangling = ", ".join(self.dangling_ids) if self.dangling_ids else "(none)"
        lines = [
            header,
            f"Replacement region: {self.replacement_id}",
            f"Dangling region ids: {dangling}",
        ]
        lines.extend(f"  {outcome.describe(verb=verb)}" for outcome in self.outcomes)
        lines.append(f"Total rows {verb}: {self.total_rows_updated}")
        if self.failures:
            lines.append(f"Tables with errors: {len(self.failures)}")
        return lines


@dataclass(slots=True)
class AuditReport:
    """Counts of dangling region references per table, without modification."""

    outcomes: list[TableOutcome] = field(default_factory=list)

    def record(self, outcome: TableOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def total_dangling(self) -> int:
        return sum(outcome.rows for outcome in self.outcomes)

    @property
    def failures(self) -> list[TableOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is TableStatus.ERROR]

    @property
    def is_clean(self) -> bool:
        """False when any table holds dangling rows or could not be audited."""
        return self.total_dangling == 0 and not self.failures

    def summary_lines(self) -> list[str]:
        lines = ["Dangling region references"]
        lines.extend(f"  {outcome.describe(verb='dangling')}" for outcome in self.outcomes)
        lines.append(f"Total dangling references: {self.total_dangling}")
        if self.failures:
            lines.append(f"Tables with errors: {len(self.failures)}")
        return lines
