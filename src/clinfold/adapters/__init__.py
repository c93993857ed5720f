"""Storage backends implementing :mod:`clinfold.domain.ports.storage`."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clinfold.config.errors import MissingConfigurationError
from clinfold.config.storage import BackendKind

from .jsonl import JsonlBackend
from .kv_http import KeyValueBackend
from .memory import MemoryBackend
from .sqlalchemy import SqlAlchemyBackend

if TYPE_CHECKING:
    from clinfold.config.storage import StorageConfig
    from clinfold.domain.ports.storage import StorageBackend


def build_storage_backend(config: StorageConfig) -> StorageBackend:
    match config.backend:
        case BackendKind.MEMORY:
            return MemoryBackend()
        case BackendKind.JSONL:
            return JsonlBackend(config.ensure_data_dir())
        case BackendKind.SQLALCHEMY:
            return SqlAlchemyBackend.from_uri(config.resolved_database_uri())
        case BackendKind.HTTP_KV:
            if config.key_value is None:
                raise MissingConfigurationError("http_kv backend requires key-value settings")
            return KeyValueBackend(config.key_value)


__all__ = [
    "JsonlBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "SqlAlchemyBackend",
    "build_storage_backend",
]
