"""Persistence port the reconciler talks to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection

    from .model import Region, RegionId, RegionReference


@runtime_checkable
class RegionStore(Protocol):
    """Relational store holding regions and the tables that reference them."""

    def list_valid_regions(self) -> list[Region]:
        """Return regions without a soft-delete marker, ordered by id."""
        ...

    def has_table(self, table: str) -> bool: ...

    def has_column(self, table: str, column: str) -> bool: ...

    def find_unmatched_region_ids(self, reference: RegionReference) -> set[RegionId]:
        """Return distinct non-null values of ``reference`` that match no valid region."""
        ...

    def count_dangling_references(self, reference: RegionReference) -> int: ...

    def count_references(
        self, reference: RegionReference, region_ids: Collection[RegionId]
    ) -> int: ...

    def replace_references(
        self,
        reference: RegionReference,
        dangling_ids: Collection[RegionId],
        replacement_id: RegionId,
    ) -> int:
        """Point rows holding any of ``dangling_ids`` at ``replacement_id``.

        All statements for one reference run in a single transaction; the
        number of rewritten rows is returned.
        """
        ...
