"""SQLAlchemy adapter package for clinfold."""

from __future__ import annotations

from .mappings import JsonPayload, UTCDateTime, create_all_tables, log_entry_table, metadata
from .store import SqlAlchemyBackend, SqlAlchemyStore

__all__ = [
    "JsonPayload",
    "SqlAlchemyBackend",
    "SqlAlchemyStore",
    "UTCDateTime",
    "create_all_tables",
    "log_entry_table",
    "metadata",
]
