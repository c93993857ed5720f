"""Storage backend configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .env import require_env_vars
from .errors import ConfigurationError
from .http import KeyValueServiceConfig

if TYPE_CHECKING:
    from .env import Environ

APP_DIR_NAME: Final[str] = "clinfold"
DEFAULT_DB_FILENAME: Final[str] = "clinfold.db"
KV_ENV_VARS: Final[tuple[str, ...]] = ("CLINFOLD_KV_BASE_URL", "CLINFOLD_KV_TOKEN")


class BackendKind(StrEnum):
    MEMORY = "memory"
    JSONL = "jsonl"
    SQLALCHEMY = "sqlalchemy"
    HTTP_KV = "http_kv"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    backend: BackendKind
    data_dir: Path
    database_uri: str | None = None
    key_value: KeyValueServiceConfig | None = None

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def resolved_database_uri(self) -> str:
        if self.database_uri:
            return self.database_uri
        return f"sqlite+pysqlite:///{self.ensure_data_dir() / DEFAULT_DB_FILENAME}"


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_backend_kind(environ: Environ) -> BackendKind:
    raw = environ.get("CLINFOLD_BACKEND", "").strip().lower()
    if not raw:
        return BackendKind.JSONL
    try:
        return BackendKind(raw)
    except ValueError as exc:
        choices = ", ".join(kind.value for kind in BackendKind)
        message = f"Unknown CLINFOLD_BACKEND {raw!r}; expected one of {choices}"
        raise ConfigurationError(message) from exc


def get_key_value_config(environ: Environ | None = None) -> KeyValueServiceConfig:
    values = require_env_vars(KV_ENV_VARS, environ)
    return KeyValueServiceConfig(
        base_url=values["CLINFOLD_KV_BASE_URL"].rstrip("/"),
        token=values["CLINFOLD_KV_TOKEN"],
    )


def get_storage_config(environ: Environ | None = None) -> StorageConfig:
    source = os.environ if environ is None else environ
    backend = get_backend_kind(source)
    env_dir = source.get("CLINFOLD_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(
        backend=backend,
        data_dir=data_dir,
        database_uri=source.get("DATABASE_URI") or None,
        key_value=get_key_value_config(source) if backend is BackendKind.HTTP_KV else None,
    )
