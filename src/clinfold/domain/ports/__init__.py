"""Domain port definitions for adapters."""

from __future__ import annotations

from .storage import AppendOnlyStore, StorageBackend

__all__ = ["AppendOnlyStore", "StorageBackend"]
