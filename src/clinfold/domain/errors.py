"""Error taxonomy shared by the domain and storage adapters."""

from __future__ import annotations


class ClinfoldError(Exception):
    """Base class for all errors raised by clinfold."""


class ParseError(ClinfoldError, ValueError):
    """Raised when a top-level input document is structurally malformed.

    Nothing is appended when this is raised. Field-level anomalies never raise;
    the normalizer degrades them to defaults instead.
    """


class StorageError(ClinfoldError, RuntimeError):
    """Raised when the backing store fails."""


class StorageWriteError(StorageError):
    """Raised when a record could not be durably appended."""


class StorageReadError(StorageError):
    """Raised when durable state could not be read back or decoded."""


__all__ = [
    "ClinfoldError",
    "ParseError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
