"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class RecordType(StrEnum):
    """Type tag inferred for every raw record on append."""

    PATIENT = "patient"
    VITALS = "vitals"
    LABS = "labs"
    MEDS = "meds"
    NOTE = "note"
    UNKNOWN = "unknown"


class Gender(StrEnum):
    MALE = "M"
    FEMALE = "F"
    UNKNOWN = "U"


class SeverityBucket(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def for_score(cls, score: int) -> SeverityBucket:
        if score <= 3:
            return cls.LOW
        if score <= 6:
            return cls.MEDIUM
        return cls.HIGH


class AuditAction(StrEnum):
    INGEST_AUTH_SUCCESS = "ingest_auth_success"
    INGEST_AUTH_FAILURE = "ingest_auth_failure"


class StreamName(StrEnum):
    """Durable append-only sequences kept by a storage backend."""

    INGEST = "ingest"
    EVALUATIONS = "evaluations"
