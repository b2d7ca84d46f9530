"""SQLAlchemy adapter package for regionfix."""

from __future__ import annotations

from .session import SessionStateError, SqlAlchemyRegionSession, build_engine
from .store import SqlAlchemyRegionStore

__all__ = [
    "SessionStateError",
    "SqlAlchemyRegionSession",
    "SqlAlchemyRegionStore",
    "build_engine",
]
