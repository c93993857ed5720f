"""SQLAlchemy-backed append-only streams."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, insert, select
from sqlalchemy.exc import SQLAlchemyError

from clinfold.domain.errors import StorageReadError, StorageWriteError

from .mappings import create_all_tables, log_entry_table

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine

    from clinfold.domain.model.enums import StreamName


class SqlAlchemyStore:
    """One stream inside the shared ``log_entry`` table, ordered by ``seq``."""

    def __init__(self, engine: Engine, stream: StreamName) -> None:
        self._engine = engine
        self._stream = str(stream)

    def append(self, payload: Mapping[str, object]) -> None:
        statement = insert(log_entry_table).values(
            stream=self._stream,
            appended_at=datetime.now(UTC),
            payload=dict(payload),
        )
        try:
            with self._engine.begin() as connection:
                connection.execute(statement)
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            raise StorageWriteError(f"Could not append to stream {self._stream}: {exc}") from exc

    def read_all(self) -> list[dict[str, object]]:
        statement = (
            select(log_entry_table.c.payload)
            .where(log_entry_table.c.stream == self._stream)
            .order_by(log_entry_table.c.seq)
        )
        try:
            with self._engine.connect() as connection:
                return [dict(payload) for payload in connection.scalars(statement)]
        except (SQLAlchemyError, json.JSONDecodeError, ValueError) as exc:
            raise StorageReadError(f"Could not read stream {self._stream}: {exc}") from exc


class SqlAlchemyBackend:
    def __init__(self, engine: Engine, *, owns_engine: bool = False) -> None:
        self.engine = engine
        self._owns_engine = owns_engine
        try:
            create_all_tables(engine)
        except SQLAlchemyError as exc:
            raise StorageWriteError(f"Could not create log tables: {exc}") from exc

    @classmethod
    def from_uri(cls, database_uri: str) -> SqlAlchemyBackend:
        return cls(create_engine(database_uri, future=True), owns_engine=True)

    def open_stream(self, name: StreamName) -> SqlAlchemyStore:
        return SqlAlchemyStore(self.engine, name)

    def close(self) -> None:
        if self._owns_engine:
            self.engine.dispose()
