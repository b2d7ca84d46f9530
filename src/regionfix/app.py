"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from logging import getLogger
from typing import TYPE_CHECKING

from regionfix.adapters.sqlalchemy import SqlAlchemyRegionSession
from regionfix.config import ReconcileSettings, get_reconcile_settings
from regionfix.domain import (
    InvalidReplacementRegionError,
    NoValidRegionError,
    Region,
    RegionCatalog,
    audit_region_references,
    discover_dangling_region_ids,
    reconcile,
    select_replacement_region,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from regionfix.domain import AuditReport, ReconciliationReport, RegionId, RegionStore

SessionFactory = Callable[[ReconcileSettings], SqlAlchemyRegionSession]
ReplacementChooser = Callable[[Sequence[Region]], "RegionId"]


log = getLogger(__name__)


def default_session_factory(settings: ReconcileSettings) -> SqlAlchemyRegionSession:
    return SqlAlchemyRegionSession(region_table=settings.region_table, schema=settings.schema)


def fix_region_references(
    *,
    settings: ReconcileSettings | None = None,
    seed_ids: Iterable[RegionId] = (),
    replacement_id: RegionId | None = None,
    choose_replacement: ReplacementChooser | None = None,
    discover: bool = True,
    dry_run: bool = False,
    continue_on_error: bool | None = None,
    session_factory: SessionFactory = default_session_factory,
) -> ReconciliationReport:
    """Open a connection, pick a replacement region and reconcile every reference.

    ``replacement_id`` wins over ``choose_replacement``, which wins over the
    automatic currency-based selection. With ``discover=False`` only the
    seeded ids are reconciled.
    """

    effective_settings = settings or get_reconcile_settings()
    seeds = tuple(seed_ids) or effective_settings.seed_region_ids
    keep_going = (
        effective_settings.continue_on_error if continue_on_error is None else continue_on_error
    )
    log.info(
        "Starting region reconciliation: seeds=%s, discover=%s, dry_run=%s, continue_on_error=%s",
        len(seeds),
        discover,
        dry_run,
        keep_going,
    )

    with session_factory(effective_settings) as session:
        store = session.store
        catalog = RegionCatalog(store)
        target = _resolve_replacement(
            catalog,
            store=store,
            settings=effective_settings,
            replacement_id=replacement_id,
            choose_replacement=choose_replacement,
        )
        if discover:
            dangling = discover_dangling_region_ids(
                store,
                seeds,
                references=effective_settings.references,
                catalog=catalog,
            )
        else:
            dangling = set(seeds)
        report = reconcile(
            store,
            dangling,
            target,
            references=effective_settings.references,
            continue_on_error=keep_going,
            dry_run=dry_run,
            catalog=catalog,
        )

    log.info(
        "Finished region reconciliation: replacement=%s, rows=%s, failures=%s",
        report.replacement_id,
        report.total_rows_updated,
        len(report.failures),
    )
    return report


def check_region_references(
    *,
    settings: ReconcileSettings | None = None,
    session_factory: SessionFactory = default_session_factory,
) -> AuditReport:
    """Count dangling region references without modifying anything."""

    effective_settings = settings or get_reconcile_settings()
    with session_factory(effective_settings) as session:
        return audit_region_references(session.store, references=effective_settings.references)


def list_valid_regions(
    *,
    settings: ReconcileSettings | None = None,
    session_factory: SessionFactory = default_session_factory,
) -> tuple[Region, ...]:
    effective_settings = settings or get_reconcile_settings()
    with session_factory(effective_settings) as session:
        return RegionCatalog(session.store).valid_regions()


def _resolve_replacement(
    catalog: RegionCatalog,
    *,
    store: RegionStore,
    settings: ReconcileSettings,
    replacement_id: RegionId | None,
    choose_replacement: ReplacementChooser | None,
) -> RegionId:
    if replacement_id is not None:
        if not catalog.is_valid(replacement_id):
            raise InvalidReplacementRegionError(replacement_id)
        return replacement_id

    if choose_replacement is not None:
        regions = catalog.valid_regions()
        if not regions:
            raise NoValidRegionError(settings.region_table)
        return choose_replacement(regions)

    return select_replacement_region(
        store,
        preferred_currency=settings.preferred_currency,
        catalog=catalog,
    )
