from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from clinfold.adapters.memory import MemoryBackend
from clinfold.app import RepositoryContext, create_repository_context
from clinfold.domain.ingest import IngestLog
from clinfold.domain.model.enums import StreamName
from tests.helpers.clock import ManualClock

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def ingest_log(memory_backend: MemoryBackend, clock: ManualClock) -> IngestLog:
    return IngestLog(memory_backend.open_stream(StreamName.INGEST), clock=clock)


@pytest.fixture
def context(memory_backend: MemoryBackend, clock: ManualClock) -> Iterator[RepositoryContext]:
    with create_repository_context(backend=memory_backend, clock=clock) as ctx:
        yield ctx


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()
