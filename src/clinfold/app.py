"""Composition root: one repository context per process or test."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from clinfold.adapters import build_storage_backend
from clinfold.config import get_repo_config
from clinfold.config.repo import DEFAULT_PROJECTION_TTL_MS, DEFAULT_TELEMETRY_MAX_ENTRIES
from clinfold.domain.clock import utcnow
from clinfold.domain.cooldown import CooldownTracker
from clinfold.domain.credentials import CredentialIndex
from clinfold.domain.evaluations import EvaluationLog
from clinfold.domain.ingest import IngestLog
from clinfold.domain.model.enums import StreamName
from clinfold.domain.projection import PatientProjection
from clinfold.domain.telemetry import AuditLog, RequestLog

if TYPE_CHECKING:
    from types import TracebackType

    from clinfold.config import RepoConfig
    from clinfold.domain.clock import Clock
    from clinfold.domain.ports.storage import StorageBackend

log = getLogger(__name__)


@dataclass(slots=True)
class RepositoryContext:
    """All stores of one process, sharing a single storage backend.

    Mutable state (projection cache, cooldown table, credential index and
    telemetry buffers) is owned by this object only.
    """

    backend: StorageBackend
    ingest: IngestLog
    evaluations: EvaluationLog
    patients: PatientProjection
    cooldown: CooldownTracker
    credentials: CredentialIndex
    audit_log: AuditLog
    request_log: RequestLog

    def __enter__(self) -> RepositoryContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self.backend.close()


def create_repository_context(
    config: RepoConfig | None = None,
    *,
    backend: StorageBackend | None = None,
    clock: Clock = utcnow,
) -> RepositoryContext:
    """Wire every store onto ``backend`` (built from ``config`` when omitted)."""

    if backend is None:
        config = config or get_repo_config()
        backend = build_storage_backend(config.storage)
    ttl_ms = config.projection_ttl_ms if config else DEFAULT_PROJECTION_TTL_MS
    telemetry_max = config.telemetry_max_entries if config else DEFAULT_TELEMETRY_MAX_ENTRIES
    cooldown_max = config.cooldown_max_entries if config else None

    ingest = IngestLog(backend.open_stream(StreamName.INGEST), clock=clock)
    patients = PatientProjection(ingest, ttl_ms=ttl_ms, clock=clock)
    credentials = CredentialIndex(ingest)
    ingest.add_listener(patients.on_record_appended)
    ingest.add_listener(credentials.on_record_appended)

    log.info(
        "Repository context ready: backend=%s, projection_ttl_ms=%s",
        type(backend).__name__,
        ttl_ms,
    )
    return RepositoryContext(
        backend=backend,
        ingest=ingest,
        evaluations=EvaluationLog(backend.open_stream(StreamName.EVALUATIONS), clock=clock),
        patients=patients,
        cooldown=CooldownTracker(clock=clock, max_entries=cooldown_max),
        credentials=credentials,
        audit_log=AuditLog(max_entries=telemetry_max, clock=clock),
        request_log=RequestLog(max_entries=telemetry_max, clock=clock),
    )


__all__ = ["RepositoryContext", "create_repository_context"]
