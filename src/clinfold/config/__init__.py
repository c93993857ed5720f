"""Application configuration helpers."""

from __future__ import annotations

from .env import load_environ, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http import KeyValueServiceConfig, RetryPolicy
from .logging import configure_logging
from .repo import RepoConfig, get_repo_config
from .storage import BackendKind, StorageConfig, get_key_value_config, get_storage_config

__all__ = [
    "BackendKind",
    "ConfigurationError",
    "KeyValueServiceConfig",
    "MissingConfigurationError",
    "RepoConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_key_value_config",
    "get_repo_config",
    "get_storage_config",
    "load_environ",
    "require_env_vars",
]
