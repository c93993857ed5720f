"""Public domain model surface."""

from __future__ import annotations

from clinfold.domain.model.enums import (
    AuditAction,
    Gender,
    RecordType,
    SeverityBucket,
    StreamName,
)
from clinfold.domain.model.evaluation import EvaluationRecord, PatientSummary, StructuredPayload
from clinfold.domain.model.patient import Labs, Patient, Vitals
from clinfold.domain.model.records import (
    AuditEntry,
    AuditStats,
    CooldownResult,
    Credential,
    DatasetStats,
    EvaluationStats,
    IngestRejection,
    IngestResult,
    PatientFilter,
    RawRecord,
    RequestLogEntry,
    RequestStats,
)

__all__ = [  # noqa: RUF022
    # enums
    "AuditAction",
    "Gender",
    "RecordType",
    "SeverityBucket",
    "StreamName",
    # entities
    "Labs",
    "Patient",
    "Vitals",
    "EvaluationRecord",
    "PatientSummary",
    "StructuredPayload",
    # records
    "AuditEntry",
    "AuditStats",
    "CooldownResult",
    "Credential",
    "DatasetStats",
    "EvaluationStats",
    "IngestRejection",
    "IngestResult",
    "PatientFilter",
    "RawRecord",
    "RequestLogEntry",
    "RequestStats",
]
