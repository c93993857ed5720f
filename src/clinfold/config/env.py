"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from dotenv import dotenv_values

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

type Environ = Mapping[str, str]


def load_environ(env_file: str | Path | None = None) -> dict[str, str]:
    """Merge ``.env`` values under the process environment.

    Real environment variables always win over values read from the file.
    """

    merged: dict[str, str] = {}
    if env_file is not None:
        file_values = dotenv_values(env_file)
        merged.update({key: value for key, value in file_values.items() if value is not None})
    merged.update(os.environ)
    return merged


def require_env_vars(names: Sequence[str], environ: Environ | None = None) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    source = os.environ if environ is None else environ
    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = source.get(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def optional_int(environ: Environ, name: str) -> int | None:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def int_setting(environ: Environ, name: str, default: int) -> int:
    value = optional_int(environ, name)
    return default if value is None else value
