"""Reconciliation settings: referencing tables, seed ids and policy flags.

Settings resolve in three layers: built-in defaults, an optional TOML file
(``[regionfix]`` in a standalone file or ``[tool.regionfix]`` in a
``pyproject.toml``), then ``REGIONFIX_*`` environment variables.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from regionfix.domain import DEFAULT_PREFERRED_CURRENCY, RegionReference

from .env import env_list
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

DEFAULT_REGION_COLUMN: Final[str] = "region_id"
DEFAULT_REFERENCE_TABLES: Final[tuple[str, ...]] = (
    "cart",
    "customer",
    "order",
    "payment_collection",
    "payment_session",
    "shipping_option",
    "shipping_method",
    "discount",
    "discount_region",
    "discount_condition_region",
    "draft_order",
    "gift_card",
    "swap",
    "claim_order",
)
DEFAULT_REFERENCES: Final[tuple[RegionReference, ...]] = tuple(
    RegionReference(table=name, column=DEFAULT_REGION_COLUMN) for name in DEFAULT_REFERENCE_TABLES
)


@dataclass(frozen=True, slots=True)
class ReconcileSettings:
    references: tuple[RegionReference, ...] = DEFAULT_REFERENCES
    seed_region_ids: tuple[str, ...] = ()
    preferred_currency: str | None = DEFAULT_PREFERRED_CURRENCY
    continue_on_error: bool = True
    region_table: str = "region"
    schema: str | None = None


class _ReferenceEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    table: str = Field(min_length=1)
    column: str = Field(default=DEFAULT_REGION_COLUMN, min_length=1)


class _SettingsDocument(BaseModel):
    """Shape of the ``[regionfix]`` TOML table."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    tables: list[str] | None = None
    references: list[_ReferenceEntry] | None = None
    extra_tables: list[str] = Field(default_factory=list)
    seed_region_ids: list[str] = Field(default_factory=list)
    preferred_currency: str | None = None
    continue_on_error: bool | None = None
    region_table: str | None = None
    schema_name: str | None = Field(default=None, alias="schema")

    @field_validator("tables", "extra_tables", "seed_region_ids")
    @classmethod
    def _strip_blank(cls, values: list[str] | None) -> list[str] | None:
        if values is None:
            return None
        return [value.strip() for value in values if value.strip()]


def load_settings_file(path: Path) -> Mapping[str, Any]:
    """Return the ``regionfix`` table of a TOML file (empty if absent)."""

    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Settings file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc

    section = document.get("regionfix")
    if section is None:
        section = document.get("tool", {}).get("regionfix", {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"[regionfix] in {path} must be a table")
    return section


def settings_from_mapping(
    values: Mapping[str, Any],
    *,
    base: ReconcileSettings | None = None,
) -> ReconcileSettings:
    """Apply a ``[regionfix]`` table on top of ``base``."""

    try:
        document = _SettingsDocument.model_validate(dict(values))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid regionfix settings: {exc}") from exc

    settings = base or ReconcileSettings()
    if document.tables is not None and document.references is not None:
        raise ConfigurationError("Use either 'tables' or 'references', not both")

    references = settings.references
    if document.references is not None:
        references = tuple(
            RegionReference(table=entry.table, column=entry.column)
            for entry in document.references
        )
    elif document.tables is not None:
        references = tuple(RegionReference(table=name) for name in document.tables)
    known = {reference.table for reference in references}
    references += tuple(
        RegionReference(table=name) for name in document.extra_tables if name not in known
    )

    return replace(
        settings,
        references=references,
        seed_region_ids=tuple(document.seed_region_ids) or settings.seed_region_ids,
        preferred_currency=_currency_preference(document.preferred_currency, settings),
        continue_on_error=(
            settings.continue_on_error
            if document.continue_on_error is None
            else document.continue_on_error
        ),
        region_table=document.region_table or settings.region_table,
        schema=document.schema_name or settings.schema,
    )


def _currency_preference(value: str | None, settings: ReconcileSettings) -> str | None:
    # an explicit empty string turns the currency preference off
    if value is None:
        return settings.preferred_currency
    return value.lower() or None


def get_reconcile_settings(path: Path | None = None) -> ReconcileSettings:
    """Build settings from defaults, an optional TOML file and the environment."""

    settings = ReconcileSettings()
    if path is not None:
        settings = settings_from_mapping(load_settings_file(path), base=settings)

    seeds = env_list("REGIONFIX_SEED_REGION_IDS")
    if seeds is not None:
        settings = replace(settings, seed_region_ids=seeds)

    currency = os.getenv("REGIONFIX_PREFERRED_CURRENCY")
    if currency is not None:
        settings = replace(settings, preferred_currency=currency.strip().lower() or None)

    if not settings.references:
        raise ConfigurationError("At least one region reference table must be configured")
    return settings
