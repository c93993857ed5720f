from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from clinfold.domain.errors import ParseError, StorageReadError
from clinfold.domain.evaluations import EvaluationLog, to_base36
from clinfold.domain.model.enums import StreamName

if TYPE_CHECKING:
    from clinfold.adapters.memory import MemoryBackend
    from tests.helpers.clock import ManualClock


@pytest.fixture
def evaluations(memory_backend: MemoryBackend, clock: ManualClock) -> EvaluationLog:
    return EvaluationLog(memory_backend.open_stream(StreamName.EVALUATIONS), clock=clock)


def _evaluation(patient_id: str, **extra: object) -> dict[str, object]:
    return {
        "patientId": patient_id,
        "patient": {
            "summary": "67F with pneumonia",
            "diagnosis": "Pneumonia",
            "category": "infectious",
            "severity": 7,
            "critical": False,
        },
        "structured": {"runs": [], "findings": [{"id": "f1"}], "conflicts": [], "followUps": []},
        **extra,
    }


def test_to_base36() -> None:
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"
    assert int(to_base36(1_700_000_000_000), 36) == 1_700_000_000_000


def test_append_stamps_id_and_timestamp(evaluations: EvaluationLog, clock: ManualClock) -> None:
    record = evaluations.append(_evaluation("P1"))

    millis = int(clock.now.timestamp() * 1000)
    assert record.id == f"eval-P1-{to_base36(millis)}"
    assert record.ts == clock.now
    assert record.patient_id == "P1"


def test_ids_stay_unique_within_one_millisecond(evaluations: EvaluationLog) -> None:
    first = evaluations.append(_evaluation("P1"))
    second = evaluations.append(_evaluation("P1"))

    assert first.id != second.id
    assert first.id < second.id


def test_payload_round_trips_with_aliases_and_extras(evaluations: EvaluationLog) -> None:
    evaluations.append(_evaluation("P1", model="gpt-x", scenario={"id": "s1", "title": "Demo"}))

    [stored] = evaluations.read_all()

    payload = stored.to_payload()
    assert payload["patientId"] == "P1"
    assert payload["model"] == "gpt-x"
    assert payload["scenario"] == {"id": "s1", "title": "Demo"}
    assert stored.structured is not None
    assert stored.structured.findings == [{"id": "f1"}]
    assert "followUps" in payload["structured"]  # type: ignore[operator]


def test_append_requires_patient_id(evaluations: EvaluationLog) -> None:
    with pytest.raises(ParseError):
        evaluations.append({"patient": {"summary": "anonymous"}})


def test_get_by_patient_and_latest(evaluations: EvaluationLog, clock: ManualClock) -> None:
    evaluations.append(_evaluation("P1"))
    clock.advance(seconds=10)
    evaluations.append(_evaluation("P2"))
    clock.advance(seconds=10)
    newest = evaluations.append(_evaluation("P1"))

    assert len(evaluations.get_by_patient("P1")) == 2
    latest = evaluations.get_latest("P1")
    assert latest is not None
    assert latest.id == newest.id
    assert evaluations.get_latest("P3") is None


def test_latest_prefers_later_append_on_timestamp_tie(evaluations: EvaluationLog) -> None:
    evaluations.append(_evaluation("P1"))
    second = evaluations.append(_evaluation("P1"))

    latest = evaluations.get_latest("P1")

    assert latest is not None
    assert latest.id == second.id


def test_get_cached_respects_freshness_window(
    evaluations: EvaluationLog, clock: ManualClock
) -> None:
    record = evaluations.append(_evaluation("P1"))

    clock.advance(hours=3)
    cached = evaluations.get_cached("P1")
    assert cached is not None
    assert cached.id == record.id

    clock.advance(hours=1, ms=1)
    assert evaluations.get_cached("P1") is None
    assert evaluations.get_cached("P1", max_age_ms=5 * 60 * 60 * 1000) is not None


def test_get_cached_without_history(evaluations: EvaluationLog) -> None:
    assert evaluations.get_cached("P1") is None


def test_stats(evaluations: EvaluationLog, clock: ManualClock) -> None:
    evaluations.append(_evaluation("P1"))
    evaluations.append(_evaluation("P2"))
    clock.advance(hours=23)
    evaluations.append(_evaluation("P1"))
    clock.advance(hours=2)

    stats = evaluations.get_stats()

    assert stats.total == 3
    assert stats.by_patient == {"P1": 2, "P2": 1}
    assert stats.recent_24h == 1


def test_invalid_stored_record_raises(memory_backend: MemoryBackend, clock: ManualClock) -> None:
    store = memory_backend.open_stream(StreamName.EVALUATIONS)
    store.append({"_id": "eval-x", "patientId": "P1"})

    with pytest.raises(StorageReadError):
        EvaluationLog(store, clock=clock).read_all()
