"""Value types for log records, stores, and telemetry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING

from clinfold.domain.clock import parse_timestamp
from clinfold.domain.errors import StorageReadError

from .enums import AuditAction, RecordType

if TYPE_CHECKING:
    from .patient import Patient

TS_KEY = "_ts"
TYPE_KEY = "_type"
ID_KEY = "_id"
ENVELOPE_KEYS = (TS_KEY, TYPE_KEY, ID_KEY)


@dataclass(frozen=True, slots=True)
class RawRecord:
    """One immutable entry of the ingestion log.

    ``fields`` holds the submitted document minus the envelope keys; the
    envelope (``ts``, ``record_type``, ``record_id``) is stamped on append.
    """

    ts: datetime
    record_type: RecordType
    record_id: str
    fields: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.fields, MappingProxyType):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            TS_KEY: self.ts.isoformat(),
            TYPE_KEY: str(self.record_type),
            ID_KEY: self.record_id,
        }
        for key, value in self.fields.items():
            if key not in ENVELOPE_KEYS:
                payload[key] = value
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> RawRecord:
        ts = payload.get(TS_KEY)
        record_type = payload.get(TYPE_KEY)
        record_id = payload.get(ID_KEY)
        if not isinstance(ts, str) or not isinstance(record_id, str):
            raise StorageReadError(f"Ingest record is missing its envelope: {dict(payload)!r}")
        try:
            parsed_ts = parse_timestamp(ts)
            parsed_type = RecordType(record_type)
        except ValueError as exc:
            raise StorageReadError(f"Invalid ingest record envelope: {exc}") from exc
        fields = {key: value for key, value in payload.items() if key not in ENVELOPE_KEYS}
        return cls(ts=parsed_ts, record_type=parsed_type, record_id=record_id, fields=fields)


@dataclass(frozen=True, slots=True)
class IngestRejection:
    """A batch element that could not be appended."""

    index: int
    reason: str


@dataclass(slots=True)
class IngestResult:
    records: list[RawRecord] = field(default_factory=list[RawRecord])
    rejected: list[IngestRejection] = field(default_factory=list[IngestRejection])

    @property
    def ingested(self) -> int:
        return len(self.records)


@dataclass(frozen=True, slots=True)
class PatientFilter:
    """AND-combined criteria; ``None`` means "do not filter on this"."""

    category: str | None = None
    critical: bool | None = None
    min_severity: int | None = None
    max_severity: int | None = None

    def matches(self, patient: Patient) -> bool:
        if self.category and patient.condition_category != self.category:
            return False
        if self.critical is not None and patient.critical_flag != self.critical:
            return False
        if self.min_severity is not None and patient.severity_score < self.min_severity:
            return False
        return not (self.max_severity is not None and patient.severity_score > self.max_severity)


@dataclass(frozen=True, slots=True)
class DatasetStats:
    total: int
    by_category: dict[str, int]
    by_severity: dict[str, int]
    critical: int


@dataclass(frozen=True, slots=True)
class EvaluationStats:
    total: int
    by_patient: dict[str, int]
    recent_24h: int


@dataclass(frozen=True, slots=True)
class CooldownResult:
    allowed: bool
    remaining_ms: int


@dataclass(frozen=True, slots=True)
class Credential:
    secret: str
    patient_id: str


@dataclass(frozen=True, slots=True)
class AuditEntry:
    timestamp: datetime
    action: AuditAction
    api_key_prefix: str
    ip: str
    user_agent: str
    path: str
    method: str
    reason: str | None = None
    record_count: int | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "timestamp": self.timestamp.isoformat(),
            "action": str(self.action),
            "apiKeyPrefix": self.api_key_prefix,
            "ip": self.ip,
            "userAgent": self.user_agent,
            "path": self.path,
            "method": self.method,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        if self.record_count is not None:
            data["recordCount"] = self.record_count
        return data


@dataclass(frozen=True, slots=True)
class AuditStats:
    total: int
    last_hour: int
    last_24h: int
    by_action: dict[str, int]


@dataclass(frozen=True, slots=True)
class RequestLogEntry:
    timestamp: datetime
    method: str
    path: str
    status: int
    duration_ms: int
    ip: str = ""
    user_agent: str = ""


@dataclass(frozen=True, slots=True)
class RequestStats:
    total: int
    last_hour: int
    last_24h: int
    avg_duration_ms: int
    by_status: dict[str, int]
    by_method: dict[str, int]
    top_paths: list[tuple[str, int]]
