"""Append-only log of evaluation results, queried by patient and freshness."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from datetime import timedelta
from typing import TYPE_CHECKING

from pydantic import ValidationError

from clinfold.domain.clock import elapsed_ms, epoch_ms, utcnow
from clinfold.domain.errors import ParseError, StorageReadError
from clinfold.domain.model.evaluation import EvaluationRecord
from clinfold.domain.model.records import EvaluationStats

if TYPE_CHECKING:
    from clinfold.domain.clock import Clock
    from clinfold.domain.ports.storage import AppendOnlyStore

DEFAULT_MAX_AGE_MS = 4 * 60 * 60 * 1000
RECENT_WINDOW = timedelta(hours=24)

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


class EvaluationLog:
    def __init__(self, store: AppendOnlyStore, *, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock
        self._last_id_ms = 0

    def append(self, data: Mapping[str, object]) -> EvaluationRecord:
        """Stamp ``_id`` and ``_ts`` on ``data`` and persist it.

        Id timestamps are bumped so that they strictly increase within one
        log instance, even when several evaluations land in the same
        millisecond.
        """

        if not isinstance(data, Mapping):
            raise ParseError(f"Expected a mapping, got {type(data).__name__}")
        now = self._clock()
        id_ms = max(epoch_ms(now), self._last_id_ms + 1)
        self._last_id_ms = id_ms
        patient_id = data.get("patientId", data.get("patient_id"))
        try:
            record = EvaluationRecord.model_validate(
                {
                    **data,
                    "_id": f"eval-{patient_id}-{to_base36(id_ms)}",
                    "_ts": now,
                }
            )
        except ValidationError as exc:
            raise ParseError(f"Invalid evaluation record: {exc}") from exc
        self._store.append(record.to_payload())
        return record

    def read_all(self) -> list[EvaluationRecord]:
        records: list[EvaluationRecord] = []
        for payload in self._store.read_all():
            try:
                records.append(EvaluationRecord.model_validate(payload))
            except ValidationError as exc:
                raise StorageReadError(f"Stored evaluation record is invalid: {exc}") from exc
        return records

    def get_by_patient(self, patient_id: str) -> list[EvaluationRecord]:
        return [record for record in self.read_all() if record.patient_id == patient_id]

    def get_latest(self, patient_id: str) -> EvaluationRecord | None:
        latest: EvaluationRecord | None = None
        for record in self.get_by_patient(patient_id):
            if latest is None or record.ts >= latest.ts:
                latest = record
        return latest

    def get_cached(
        self, patient_id: str, max_age_ms: int = DEFAULT_MAX_AGE_MS
    ) -> EvaluationRecord | None:
        latest = self.get_latest(patient_id)
        if latest is None:
            return None
        if elapsed_ms(latest.ts, self._clock()) > max_age_ms:
            return None
        return latest

    def get_stats(self) -> EvaluationStats:
        records = self.read_all()
        now = self._clock()
        return EvaluationStats(
            total=len(records),
            by_patient=dict(Counter(record.patient_id for record in records)),
            recent_24h=sum(1 for record in records if now - record.ts < RECENT_WINDOW),
        )


__all__ = ["DEFAULT_MAX_AGE_MS", "EvaluationLog", "to_base36"]
