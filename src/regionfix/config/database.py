"""Database connection settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from .env import env_int, env_or_default

DEFAULT_DB_HOST: Final[str] = "localhost"
DEFAULT_DB_PORT: Final[int] = 5433
DEFAULT_DB_NAME: Final[str] = "medusa_local"
DEFAULT_DB_USER: Final[str] = "postgres"
DEFAULT_DB_PASSWORD: Final[str] = "postgres"
DEFAULT_DRIVER: Final[str] = "postgresql+psycopg2"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str

    def redacted(self) -> str:
        """Return the URI with any password masked, for log output."""

        try:
            return make_url(self.uri).render_as_string(hide_password=True)
        except ArgumentError:
            return self.uri


def get_database_config() -> DatabaseConfig:
    """Resolve the database URI from ``DATABASE_URI``/``DATABASE_URL`` or ``DB_*`` parts."""

    for name in ("DATABASE_URI", "DATABASE_URL"):
        env_uri = os.getenv(name)
        if env_uri and env_uri.strip():
            return DatabaseConfig(uri=env_uri.strip())

    url = URL.create(
        DEFAULT_DRIVER,
        username=env_or_default("DB_USER", DEFAULT_DB_USER),
        password=env_or_default("DB_PASSWORD", DEFAULT_DB_PASSWORD),
        host=env_or_default("DB_HOST", DEFAULT_DB_HOST),
        port=env_int("DB_PORT", DEFAULT_DB_PORT),
        database=env_or_default("DB_NAME", DEFAULT_DB_NAME),
    )
    return DatabaseConfig(uri=url.render_as_string(hide_password=False))
