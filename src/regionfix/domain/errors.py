"""Error taxonomy for region reference reconciliation.

Only ``DatabaseConnectionError``, ``NoValidRegionError`` and
``InvalidReplacementRegionError`` abort a run. ``UpdateFailure`` is raised by
store adapters for a single table and absorbed into the report unless the
caller disabled ``continue_on_error``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import RegionReference
    from .report import ReconciliationReport


class RegionFixError(RuntimeError):
    """Base class for reconciliation errors."""


class DatabaseConnectionError(RegionFixError):
    """Raised when the database cannot be reached or authentication fails."""


class NoValidRegionError(RegionFixError):
    """Raised when the region table holds no row without a soft-delete marker."""

    def __init__(self, region_table: str = "region") -> None:
        super().__init__(f"No valid (non-deleted) regions found in table {region_table!r}")
        self.region_table = region_table


class InvalidReplacementRegionError(RegionFixError):
    """Raised when the chosen replacement is missing or soft-deleted."""

    def __init__(self, region_id: str) -> None:
        super().__init__(f"Replacement region {region_id!r} is not a valid region")
        self.region_id = region_id


class UpdateFailure(RegionFixError):
    """Raised when a statement against one referencing table fails."""

    def __init__(self, reference: RegionReference, detail: str) -> None:
        super().__init__(f"{reference}: {detail}")
        self.reference = reference
        self.detail = detail


class ReconciliationAbortedError(RegionFixError):
    """Raised on the first table failure when ``continue_on_error`` is disabled."""

    def __init__(self, report: ReconciliationReport) -> None:
        failed = ", ".join(outcome.table for outcome in report.failures) or "unknown table"
        super().__init__(f"Reconciliation aborted after update failure in {failed}")
        self.report = report
