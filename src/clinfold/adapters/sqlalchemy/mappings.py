"""SQLAlchemy table metadata for append-only log streams."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class JsonPayload(TypeDecorator[dict[str, object]]):
    """JSON object stored as text so every dialect round-trips it byte for byte."""

    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: dict[str, object] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> dict[str, object]:
        _ = dialect
        if value is None:
            return {}
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            raise ValueError("Stored payload is not a JSON object")
        return cast("dict[str, object]", loaded)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "pk": "pk_%(table_name)s",
    }
)

log_entry_table = Table(
    "log_entry",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("stream", String(32), nullable=False),
    Column("appended_at", UTCDateTime, nullable=False),
    Column("payload", JsonPayload, nullable=False),
    Index(None, "stream", "seq"),
)


def create_all_tables(engine: Engine) -> None:
    log.debug("Creating log tables on %s", engine.url)
    metadata.create_all(engine)
