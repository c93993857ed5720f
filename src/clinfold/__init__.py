"""Clinical record ingestion and patient state reconstruction."""

from __future__ import annotations

from .app import RepositoryContext, create_repository_context

__all__ = ["RepositoryContext", "create_repository_context"]
