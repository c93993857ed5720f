"""TTL-cached projection of canonical patients from the ingestion log."""

from __future__ import annotations

from collections import Counter
from logging import getLogger
from typing import TYPE_CHECKING

from clinfold.domain.clock import elapsed_ms, utcnow
from clinfold.domain.model.enums import RecordType, SeverityBucket
from clinfold.domain.model.records import TYPE_KEY, DatasetStats, PatientFilter
from clinfold.domain.normalization import normalize_patient

if TYPE_CHECKING:
    from datetime import datetime

    from clinfold.domain.clock import Clock
    from clinfold.domain.ingest import IngestLog
    from clinfold.domain.model.patient import Patient
    from clinfold.domain.model.records import RawRecord

log = getLogger(__name__)

DEFAULT_PROJECTION_TTL_MS = 5_000


class PatientProjection:
    """Serve folded patient views with bounded staleness.

    A snapshot built at ``T`` is reused while ``now - T < ttl_ms``. Any write
    to the ingestion log must call :meth:`invalidate_cache`; the repository
    context wires that through an ingest listener.
    """

    def __init__(
        self,
        ingest_log: IngestLog,
        *,
        ttl_ms: int = DEFAULT_PROJECTION_TTL_MS,
        clock: Clock = utcnow,
    ) -> None:
        self._ingest_log = ingest_log
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._cache: list[Patient] | None = None
        self._cached_at: datetime | None = None

    def load_all(self) -> list[Patient]:
        now = self._clock()
        if (
            self._cache is not None
            and self._cached_at is not None
            and elapsed_ms(self._cached_at, now) < self._ttl_ms
        ):
            return list(self._cache)

        states = self._ingest_log.get_patient_states()
        patients = [
            normalize_patient(state, clock=self._clock)
            for state in states.values()
            if state.get(TYPE_KEY) == RecordType.PATIENT
        ]
        log.info(
            "Rebuilt patient projection: %d patients from %d states", len(patients), len(states)
        )
        self._cache = patients
        self._cached_at = now
        return list(patients)

    def invalidate_cache(self) -> None:
        self._cache = None
        self._cached_at = None

    def on_record_appended(self, record: RawRecord) -> None:  # noqa: ARG002
        self.invalidate_cache()

    def get_by_id(self, patient_id: str) -> Patient | None:
        return next((p for p in self.load_all() if p.patient_id == patient_id), None)

    def filter(self, criteria: PatientFilter | None = None) -> list[Patient]:
        criteria = criteria or PatientFilter()
        return [patient for patient in self.load_all() if criteria.matches(patient)]

    def get_stats(self) -> DatasetStats:
        patients = self.load_all()
        by_severity = {str(bucket): 0 for bucket in SeverityBucket}
        for patient in patients:
            by_severity[SeverityBucket.for_score(patient.severity_score)] += 1
        return DatasetStats(
            total=len(patients),
            by_category=dict(Counter(patient.condition_category for patient in patients)),
            by_severity=by_severity,
            critical=sum(1 for patient in patients if patient.critical_flag),
        )


__all__ = ["DEFAULT_PROJECTION_TTL_MS", "PatientProjection"]
