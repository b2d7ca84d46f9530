"""Application configuration helpers."""

from __future__ import annotations

from .database import DatabaseConfig, get_database_config
from .env import env_int, env_list, env_or_default
from .errors import ConfigurationError
from .logging import configure_logging
from .reconcile import (
    DEFAULT_REFERENCE_TABLES,
    DEFAULT_REFERENCES,
    ReconcileSettings,
    get_reconcile_settings,
    load_settings_file,
    settings_from_mapping,
)

__all__ = [
    "DEFAULT_REFERENCES",
    "DEFAULT_REFERENCE_TABLES",
    "ConfigurationError",
    "DatabaseConfig",
    "ReconcileSettings",
    "configure_logging",
    "env_int",
    "env_list",
    "env_or_default",
    "get_database_config",
    "get_reconcile_settings",
    "load_settings_file",
    "settings_from_mapping",
]
