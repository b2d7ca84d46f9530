"""Domain layer: region model, reconciliation operations and their reports."""

from __future__ import annotations

from .errors import (
    DatabaseConnectionError,
    InvalidReplacementRegionError,
    NoValidRegionError,
    ReconciliationAbortedError,
    RegionFixError,
    UpdateFailure,
)
from .model import Region, RegionId, RegionReference
from .ports import RegionStore
from .reconciliation import (
    DEFAULT_PREFERRED_CURRENCY,
    audit_region_references,
    discover_dangling_region_ids,
    reconcile,
    select_replacement_region,
)
from .regions import DEFAULT_REGION_TTL, RegionCatalog
from .report import AuditReport, ReconciliationReport, TableOutcome, TableStatus

__all__ = [
    "DEFAULT_PREFERRED_CURRENCY",
    "DEFAULT_REGION_TTL",
    "AuditReport",
    "DatabaseConnectionError",
    "InvalidReplacementRegionError",
    "NoValidRegionError",
    "ReconciliationAbortedError",
    "ReconciliationReport",
    "Region",
    "RegionCatalog",
    "RegionFixError",
    "RegionId",
    "RegionReference",
    "RegionStore",
    "TableOutcome",
    "TableStatus",
    "UpdateFailure",
    "audit_region_references",
    "discover_dangling_region_ids",
    "reconcile",
    "select_replacement_region",
]
