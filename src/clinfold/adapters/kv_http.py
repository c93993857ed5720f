"""Streams kept as JSON arrays in an external key-value HTTP service.

Each stream is a single value (``ingest:log``, ``evaluations:log``) that is
read, extended and written back on every append. The service exposes
``GET``/``PUT`` on ``/values/<key>`` with bearer-token authentication; a
``404`` means the key has never been written.
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
from httpx_retries import RetryTransport
from pydantic import TypeAdapter, ValidationError

from clinfold.domain.errors import StorageReadError, StorageWriteError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from clinfold.config.http import KeyValueServiceConfig
    from clinfold.domain.model.enums import StreamName

log = getLogger(__name__)

_STREAM_VALUE = TypeAdapter(list[dict[str, Any]])


def stream_key(name: StreamName) -> str:
    return f"{name}:log"


class KeyValueStore:
    def __init__(self, client: httpx.Client, key: str) -> None:
        self._client = client
        self._key = key
        self._path = f"/values/{quote(key, safe='')}"

    def _fetch(self) -> list[dict[str, object]]:
        response = self._client.get(self._path)
        if response.status_code == httpx.codes.NOT_FOUND:
            return []
        response.raise_for_status()
        return _STREAM_VALUE.validate_json(response.content)

    def append(self, payload: Mapping[str, object]) -> None:
        try:
            entries = self._fetch()
        except (httpx.HTTPError, ValidationError) as exc:
            raise StorageWriteError(f"Could not load {self._key} before append: {exc}") from exc
        entries.append(dict(payload))
        try:
            body = json.dumps(entries, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageWriteError(f"Payload is not JSON serialisable: {exc}") from exc
        try:
            response = self._client.put(
                self._path,
                content=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageWriteError(f"Could not write {self._key}: {exc}") from exc
        log.debug("Appended to %s (%d entries)", self._key, len(entries))

    def read_all(self) -> list[dict[str, object]]:
        try:
            return self._fetch()
        except (httpx.HTTPError, ValidationError) as exc:
            raise StorageReadError(f"Could not read {self._key}: {exc}") from exc


class KeyValueBackend:
    def __init__(
        self,
        config: KeyValueServiceConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        retry_transport = RetryTransport(
            transport=transport or httpx.HTTPTransport(),
            retry=config.retry.build(),
        )
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers={"Authorization": f"Bearer {config.token}"},
            transport=retry_transport,
        )

    def open_stream(self, name: StreamName) -> KeyValueStore:
        return KeyValueStore(self._client, stream_key(name))

    def close(self) -> None:
        self._client.close()
