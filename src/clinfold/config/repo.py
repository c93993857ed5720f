"""Top-level configuration for one repository context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from clinfold.domain.projection import DEFAULT_PROJECTION_TTL_MS
from clinfold.domain.telemetry import DEFAULT_MAX_ENTRIES as DEFAULT_TELEMETRY_MAX_ENTRIES

from .env import int_setting, load_environ, optional_int
from .storage import StorageConfig, get_storage_config

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True, slots=True)
class RepoConfig:
    storage: StorageConfig
    projection_ttl_ms: int = DEFAULT_PROJECTION_TTL_MS
    telemetry_max_entries: int = DEFAULT_TELEMETRY_MAX_ENTRIES
    cooldown_max_entries: int | None = None


def get_repo_config(*, env_file: str | Path | None = None) -> RepoConfig:
    environ = load_environ(env_file)
    return RepoConfig(
        storage=get_storage_config(environ),
        projection_ttl_ms=int_setting(
            environ, "CLINFOLD_PROJECTION_TTL_MS", DEFAULT_PROJECTION_TTL_MS
        ),
        telemetry_max_entries=int_setting(
            environ, "CLINFOLD_TELEMETRY_MAX_ENTRIES", DEFAULT_TELEMETRY_MAX_ENTRIES
        ),
        cooldown_max_entries=optional_int(environ, "CLINFOLD_COOLDOWN_MAX_ENTRIES"),
    )
