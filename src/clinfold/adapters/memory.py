"""Process-local storage backend for tests and ephemeral use."""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING

from clinfold.domain.errors import StorageWriteError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from clinfold.domain.model.enums import StreamName


class MemoryStore:
    """List-backed stream; payloads are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._payloads: list[dict[str, object]] = []

    def append(self, payload: Mapping[str, object]) -> None:
        try:
            # Keeps the same JSON-only contract as the durable backends.
            json.dumps(payload)
        except (TypeError, ValueError) as exc:
            raise StorageWriteError(f"Payload is not JSON serialisable: {exc}") from exc
        self._payloads.append(copy.deepcopy(dict(payload)))

    def read_all(self) -> list[dict[str, object]]:
        return copy.deepcopy(self._payloads)


class MemoryBackend:
    def __init__(self) -> None:
        self._streams: dict[StreamName, MemoryStore] = {}

    def open_stream(self, name: StreamName) -> MemoryStore:
        return self._streams.setdefault(name, MemoryStore())

    def close(self) -> None:
        return None
