"""Ports for durable append-only storage."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from clinfold.domain.model.enums import StreamName


@runtime_checkable
class AppendOnlyStore(Protocol):
    """Totally ordered sequence of self-describing JSON objects.

    ``read_all`` re-reads durable state on every call and returns payloads in
    append order. Implementations raise ``StorageWriteError`` and
    ``StorageReadError`` on backend failure.
    """

    def append(self, payload: Mapping[str, object]) -> None: ...

    def read_all(self) -> list[dict[str, object]]: ...


@runtime_checkable
class StorageBackend(Protocol):
    """Factory for the named streams of one storage technology."""

    def open_stream(self, name: StreamName) -> AppendOnlyStore: ...

    def close(self) -> None: ...
