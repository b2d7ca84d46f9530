"""Region reference reconciliation.

Restoring a remote snapshot into a local database can leave rows pointing at
region ids that do not exist locally. The operations here pick one valid
replacement region, find the dangling ids and rewrite every configured
reference to them. The sweep is best effort across tables: each table is
updated atomically, but nothing spans tables.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import (
    InvalidReplacementRegionError,
    NoValidRegionError,
    ReconciliationAbortedError,
    UpdateFailure,
)
from .regions import RegionCatalog
from .report import AuditReport, ReconciliationReport, TableOutcome, TableStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .model import RegionId, RegionReference
    from .ports import RegionStore

DEFAULT_PREFERRED_CURRENCY = "usd"

log = getLogger(__name__)


def select_replacement_region(
    store: RegionStore,
    *,
    preferred_currency: str | None = DEFAULT_PREFERRED_CURRENCY,
    catalog: RegionCatalog | None = None,
) -> RegionId:
    """Return the region dangling references should point at.

    The first valid region whose currency matches ``preferred_currency`` wins;
    otherwise the first valid region in store order. Raises
    ``NoValidRegionError`` when there is nothing to repair into.
    """

    regions = (catalog or RegionCatalog(store)).valid_regions()
    if not regions:
        raise NoValidRegionError

    if preferred_currency:
        for region in regions:
            if region.matches_currency(preferred_currency):
                log.info("Selected replacement region %s", region.describe())
                return region.id
        log.info(
            "No valid region uses currency %s, falling back to first region",
            preferred_currency,
        )

    chosen = regions[0]
    log.info("Selected replacement region %s", chosen.describe())
    return chosen.id


def discover_dangling_region_ids(
    store: RegionStore,
    seed_ids: Iterable[RegionId] = (),
    *,
    references: Sequence[RegionReference],
    catalog: RegionCatalog | None = None,
) -> set[RegionId]:
    """Union ``seed_ids`` with region ids referenced but absent from the valid set."""

    effective_catalog = catalog or RegionCatalog(store)
    discovered: set[RegionId] = set()
    for reference in references:
        try:
            if not _reference_exists(store, reference):
                continue
            found = store.find_unmatched_region_ids(reference)
        except UpdateFailure as exc:
            log.error("Could not scan %s for dangling region ids: %s", reference, exc.detail)
            continue
        if found:
            log.debug("Found %s dangling region ids in %s", len(found), reference)
        discovered |= found

    dangling = discovered | {seed for seed in seed_ids if seed}
    live = {region_id for region_id in dangling if effective_catalog.is_valid(region_id)}
    for region_id in sorted(live):
        log.warning("Ignoring seed region id %s: it is a valid region", region_id)
    dangling -= live

    log.info("Discovered %s dangling region ids", len(dangling))
    return dangling


def reconcile(
    store: RegionStore,
    dangling_ids: Iterable[RegionId],
    replacement_id: RegionId,
    *,
    references: Sequence[RegionReference],
    continue_on_error: bool = True,
    dry_run: bool = False,
    catalog: RegionCatalog | None = None,
) -> ReconciliationReport:
    """Rewrite every reference to ``dangling_ids`` so it points at ``replacement_id``.

    Missing tables and columns are recorded as skipped. A failing table is
    rolled back and recorded; with ``continue_on_error=False`` the run stops
    there and ``ReconciliationAbortedError`` carries the partial report.
    """

    effective_catalog = catalog or RegionCatalog(store)
    if not effective_catalog.is_valid(replacement_id):
        raise InvalidReplacementRegionError(replacement_id)

    targets = _filter_dangling(dangling_ids, effective_catalog)
    report = ReconciliationReport(
        replacement_id=replacement_id,
        dangling_ids=targets,
        dry_run=dry_run,
    )
    log.info(
        "Reconciling %s dangling region ids into %s across %s tables%s",
        len(targets),
        replacement_id,
        len(references),
        " (dry run)" if dry_run else "",
    )

    for reference in references:
        outcome = _reconcile_reference(store, reference, targets, replacement_id, dry_run=dry_run)
        report.record(outcome)
        if outcome.status is TableStatus.ERROR and not continue_on_error:
            raise ReconciliationAbortedError(report)

    log.info(
        "Finished reconciliation: rows=%s, skipped=%s, failed=%s",
        report.total_rows_updated,
        len(report.skipped),
        len(report.failures),
    )
    return report


def audit_region_references(
    store: RegionStore,
    *,
    references: Sequence[RegionReference],
) -> AuditReport:
    """Count rows whose region reference names no valid region."""

    report = AuditReport()
    for reference in references:
        try:
            status = _schema_status(store, reference)
            if status is not None:
                report.record(TableOutcome(reference=reference, status=status))
                continue
            count = store.count_dangling_references(reference)
        except UpdateFailure as exc:
            log.error("Could not audit %s: %s", reference, exc)
            report.record(
                TableOutcome(reference=reference, status=TableStatus.ERROR, error=exc.detail)
            )
            continue
        if count:
            log.warning("%s rows in %s reference a missing region", count, reference)
        report.record(TableOutcome(reference=reference, status=TableStatus.UPDATED, rows=count))
    return report


def _reconcile_reference(
    store: RegionStore,
    reference: RegionReference,
    dangling_ids: tuple[RegionId, ...],
    replacement_id: RegionId,
    *,
    dry_run: bool,
) -> TableOutcome:
    try:
        status = _schema_status(store, reference)
        if status is not None:
            log.warning("Skipping %s: %s", reference.table, status)
            return TableOutcome(reference=reference, status=status)
        if not dangling_ids:
            return TableOutcome(reference=reference, status=TableStatus.UPDATED)
        if dry_run:
            rows = store.count_references(reference, dangling_ids)
        else:
            rows = store.replace_references(reference, dangling_ids, replacement_id)
    except UpdateFailure as exc:
        log.error("Skipping %s: error processing: %s", reference.table, exc.detail)
        return TableOutcome(reference=reference, status=TableStatus.ERROR, error=exc.detail)

    if rows:
        log.info("%s %s rows in %s", "Would update" if dry_run else "Updated", rows, reference)
    return TableOutcome(reference=reference, status=TableStatus.UPDATED, rows=rows)


def _schema_status(store: RegionStore, reference: RegionReference) -> TableStatus | None:
    if not store.has_table(reference.table):
        return TableStatus.TABLE_NOT_FOUND
    if not store.has_column(reference.table, reference.column):
        return TableStatus.COLUMN_NOT_FOUND
    return None


def _reference_exists(store: RegionStore, reference: RegionReference) -> bool:
    return _schema_status(store, reference) is None


def _filter_dangling(
    dangling_ids: Iterable[RegionId],
    catalog: RegionCatalog,
) -> tuple[RegionId, ...]:
    targets: list[RegionId] = []
    for region_id in sorted(set(dangling_ids)):
        if not region_id:
            continue
        if catalog.is_valid(region_id):
            log.warning("Not replacing %s: it is a valid region", region_id)
            continue
        targets.append(region_id)
    return tuple(targets)

