"""Append-only ingestion log and the replay that folds it into entity states."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from logging import getLogger
from typing import TYPE_CHECKING, cast

from clinfold.domain.clock import epoch_ms, utcnow
from clinfold.domain.documents import decode_document
from clinfold.domain.errors import ParseError
from clinfold.domain.folding import State, deep_merge
from clinfold.domain.model.enums import RecordType
from clinfold.domain.model.records import (
    ENVELOPE_KEYS,
    ID_KEY,
    TYPE_KEY,
    IngestRejection,
    IngestResult,
    RawRecord,
)
from clinfold.domain.normalization import ID_ALIASES, first_present, resolve_identity

if TYPE_CHECKING:
    from clinfold.domain.clock import Clock
    from clinfold.domain.documents import DocumentFormat
    from clinfold.domain.ports.storage import AppendOnlyStore

log = getLogger(__name__)

type IngestListener = Callable[[RawRecord], None]

CLINICAL_FIELDS: tuple[str, ...] = (
    "diagnosis",
    "primary_diagnosis",
    "dx",
    "chief_complaint",
    "age",
)
NARRATIVE_FIELDS: tuple[str, ...] = ("note", "text", "narrative")
MEDICATION_FIELDS: tuple[str, ...] = ("medications", "meds", "drugs")
VITALS_FIELDS: tuple[str, ...] = (
    "vitals",
    "spo2",
    "o2sat",
    "oxygen_saturation",
    "heart_rate",
    "hr",
    "pulse",
    "bp",
    "blood_pressure",
)
LABS_FIELDS: tuple[str, ...] = ("labs", "hemoglobin", "hgb", "hb", "wbc", "creatinine", "cr")


def infer_record_type(document: Mapping[str, object]) -> RecordType:
    """Classify a document; the checks run in a fixed precedence order."""

    has_id = first_present(document, ID_ALIASES) is not None
    has_clinical = first_present(document, CLINICAL_FIELDS) is not None
    if has_id and has_clinical:
        return RecordType.PATIENT
    if first_present(document, NARRATIVE_FIELDS) is not None:
        return RecordType.NOTE
    if first_present(document, MEDICATION_FIELDS) is not None:
        return RecordType.MEDS
    if not has_clinical and first_present(document, VITALS_FIELDS) is not None:
        return RecordType.VITALS
    if not has_clinical and first_present(document, LABS_FIELDS) is not None:
        return RecordType.LABS
    if has_id:
        return RecordType.PATIENT
    return RecordType.UNKNOWN


class IngestLog:
    """Durable, totally ordered log of raw submitted documents."""

    def __init__(self, store: AppendOnlyStore, *, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock
        self._listeners: list[IngestListener] = []

    def add_listener(self, listener: IngestListener) -> None:
        """Register a callback invoked after every successful append."""

        self._listeners.append(listener)

    def append(self, document: object) -> RawRecord:
        if not isinstance(document, Mapping):
            raise ParseError(f"Expected a mapping, got {type(document).__name__}")
        submitted = cast("Mapping[str, object]", document)
        fields = {key: value for key, value in submitted.items() if key not in ENVELOPE_KEYS}
        now = self._clock()
        record = RawRecord(
            ts=now,
            record_type=infer_record_type(fields),
            record_id=resolve_identity(fields) or f"auto-{epoch_ms(now)}",
            fields=fields,
        )
        self._store.append(record.to_payload())
        for listener in self._listeners:
            listener(record)
        return record

    def ingest(
        self,
        document: object,
        *,
        format: DocumentFormat | None = None,  # noqa: A002
    ) -> IngestResult:
        """Decode ``document`` and append each element independently.

        Elements that are not mappings, or could not be decoded, are reported
        in ``IngestResult.rejected``; storage failures propagate.
        """

        result = IngestResult()
        for element in decode_document(document, format=format):
            if element.error is not None:
                result.rejected.append(IngestRejection(element.index, element.error))
                continue
            if not isinstance(element.value, Mapping):
                reason = f"Expected a mapping, got {type(element.value).__name__}"
                log.warning("Rejecting batch element %d: %s", element.index, reason)
                result.rejected.append(IngestRejection(element.index, reason))
                continue
            result.records.append(self.append(element.value))
        return result

    def read_log(self) -> list[RawRecord]:
        return [RawRecord.from_payload(payload) for payload in self._store.read_all()]

    def get_patient_states(self) -> dict[str, State]:
        """Replay the log in append order into one folded state per id."""

        states: dict[str, State] = {}
        for record in self.read_log():
            payload = record.to_payload()
            current = states.get(record.record_id)
            if current is None:
                states[record.record_id] = payload
                continue
            merged = deep_merge(current, payload)
            if current.get(TYPE_KEY) == RecordType.PATIENT:
                merged[TYPE_KEY] = str(RecordType.PATIENT)
            merged[ID_KEY] = record.record_id
            states[record.record_id] = merged
        return states


__all__ = ["IngestListener", "IngestLog", "infer_record_type"]
