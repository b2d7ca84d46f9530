"""Environment variable loaders for configuration."""

from __future__ import annotations

import os

from .errors import ConfigurationError


def env_or_default(name: str, default: str) -> str:
    """Return ``name`` from the environment, falling back when unset or blank."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def env_list(name: str) -> tuple[str, ...] | None:
    """Split a comma-separated variable; ``None`` when the variable is unset."""

    raw = os.getenv(name)
    if raw is None:
        return None
    return tuple(item.strip() for item in raw.split(",") if item.strip())
