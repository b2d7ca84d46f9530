"""Time-bounded lookup of valid regions.

A ``RegionCatalog`` is created by the caller and passed explicitly into the
reconciliation operations so one run reuses a single snapshot of the region
table instead of querying it for every check.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable

    from .model import Region, RegionId
    from .ports import RegionStore

DEFAULT_REGION_TTL: Final[timedelta] = timedelta(seconds=30)

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RegionCatalog:
    def __init__(
        self,
        store: RegionStore,
        *,
        ttl: timedelta = DEFAULT_REGION_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if ttl < timedelta(0):
            raise ValueError("Region catalog TTL must be non-negative")
        self._store = store
        self._ttl = ttl
        self._clock = clock
        self._regions: tuple[Region, ...] | None = None
        self._by_id: dict[RegionId, Region] = {}
        self._loaded_at: datetime | None = None

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def valid_regions(self) -> tuple[Region, ...]:
        """Return valid regions in store order, refreshing once the TTL elapsed."""

        regions = self._regions
        if regions is None or self._is_stale():
            regions = self._refresh()
        return regions

    def get(self, region_id: RegionId) -> Region | None:
        self.valid_regions()
        return self._by_id.get(region_id)

    def is_valid(self, region_id: RegionId) -> bool:
        return self.get(region_id) is not None

    def invalidate(self) -> None:
        self._regions = None
        self._by_id = {}
        self._loaded_at = None

    def _is_stale(self) -> bool:
        if self._regions is None or self._loaded_at is None:
            return True
        return self._clock() - self._loaded_at >= self._ttl

    def _refresh(self) -> tuple[Region, ...]:
        regions = tuple(region for region in self._store.list_valid_regions() if region.is_valid)
        self._regions = regions
        self._by_id = {region.id: region for region in regions}
        self._loaded_at = self._clock()
        log.debug("Loaded %s valid regions", len(regions))
        return regions
