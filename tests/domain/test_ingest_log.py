from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from clinfold.domain.errors import ParseError, StorageReadError, StorageWriteError
from clinfold.domain.ingest import IngestLog, infer_record_type
from clinfold.domain.model.enums import RecordType
from clinfold.domain.model.records import RawRecord
from clinfold.domain.normalization import normalize_patient

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tests.helpers.clock import ManualClock


class FailingStore:
    def append(self, payload: Mapping[str, object]) -> None:
        raise StorageWriteError("disk full")

    def read_all(self) -> list[dict[str, object]]:
        return []


@pytest.mark.parametrize(
    ("document", "expected"),
    [
        ({"id": "P1", "age": 40, "spo2": 95}, RecordType.PATIENT),
        ({"spo2": 95}, RecordType.VITALS),
        ({"id": "P1", "hr": 80}, RecordType.VITALS),
        ({"id": "P1", "note": "Pt resting", "diagnosis": "Flu"}, RecordType.PATIENT),
        ({"id": "P1", "narrative": "Pt resting", "spo2": 91}, RecordType.NOTE),
        ({"mrn": "M1", "meds": "aspirin", "wbc": 12}, RecordType.MEDS),
        ({"labs": {"wbc": 11}}, RecordType.LABS),
        ({"id": "P1", "hgb": 9.1}, RecordType.LABS),
        ({"diagnosis": "Sepsis", "spo2": 90}, RecordType.UNKNOWN),
        ({"id": "P1"}, RecordType.PATIENT),
        ({"encounter_id": "E1", "insurance": "Medicaid"}, RecordType.PATIENT),
        ({"foo": "bar"}, RecordType.UNKNOWN),
        ({"id": "", "diagnosis": ""}, RecordType.UNKNOWN),
    ],
)
def test_infer_record_type(document: dict[str, object], expected: RecordType) -> None:
    assert infer_record_type(document) is expected


def test_append_stamps_envelope(ingest_log: IngestLog, clock: ManualClock) -> None:
    record = ingest_log.append({"mrn": "M-1", "diagnosis": "Asthma"})

    assert record.ts == clock.now
    assert record.record_type is RecordType.PATIENT
    assert record.record_id == "M-1"
    assert record.fields["diagnosis"] == "Asthma"


def test_append_synthesizes_auto_id(ingest_log: IngestLog, clock: ManualClock) -> None:
    record = ingest_log.append({"spo2": 97})

    assert record.record_id == f"auto-{int(clock.now.timestamp() * 1000)}"


def test_stamp_keys_win_over_submitted_keys(ingest_log: IngestLog) -> None:
    ingest_log.append({"id": "P1", "_type": "note", "_id": "forged", "_ts": "1999-01-01"})

    stored = ingest_log.read_log()[0]
    assert stored.record_type is RecordType.PATIENT
    assert stored.record_id == "P1"
    assert stored.to_payload()["_id"] == "P1"


def test_append_rejects_non_mapping(ingest_log: IngestLog) -> None:
    with pytest.raises(ParseError):
        ingest_log.append(["id", "P1"])

    assert ingest_log.read_log() == []


def test_storage_failures_propagate(clock: ManualClock) -> None:
    log = IngestLog(FailingStore(), clock=clock)

    with pytest.raises(StorageWriteError):
        log.append({"id": "P1"})


def test_read_log_is_ordered_and_restartable(ingest_log: IngestLog, clock: ManualClock) -> None:
    ingest_log.append({"id": "P1", "age": 40})
    clock.advance(ms=5)
    ingest_log.append({"id": "P2", "age": 50})

    first = ingest_log.read_log()
    second = ingest_log.read_log()

    assert [r.record_id for r in first] == ["P1", "P2"]
    assert first == second
    assert all(isinstance(r, RawRecord) for r in first)


def test_read_log_rejects_corrupt_envelopes() -> None:
    class CorruptStore:
        def append(self, payload: Mapping[str, object]) -> None:
            raise AssertionError("unused")

        def read_all(self) -> list[dict[str, object]]:
            return [{"_ts": "2025-01-01T00:00:00Z", "_type": "mystery", "_id": "P1"}]

    with pytest.raises(StorageReadError):
        IngestLog(CorruptStore()).read_log()


def test_end_to_end_fold(ingest_log: IngestLog, clock: ManualClock) -> None:
    ingest_log.append({"id": "P1", "diagnosis": "Chest Pain"})
    clock.advance(ms=10)
    ingest_log.append({"id": "P1", "bp": "140/90", "hr": 88})
    clock.advance(ms=10)
    ingest_log.append({"id": "P1", "labs": {"troponin": 0.04}})

    state = ingest_log.get_patient_states()["P1"]

    assert state["diagnosis"] == "Chest Pain"
    assert state["labs"] == {"troponin": 0.04}
    assert state["_type"] == "patient"
    patient = normalize_patient(state)
    assert patient.primary_diagnosis == "Chest Pain"
    assert patient.vitals.systolic_bp == 140
    assert patient.vitals.diastolic_bp == 90
    assert patient.vitals.heart_rate == 88


def test_folded_state_takes_latest_timestamp(ingest_log: IngestLog, clock: ManualClock) -> None:
    ingest_log.append({"id": "P1", "diagnosis": "Flu"})
    later = clock.advance(seconds=30)
    ingest_log.append({"id": "P1", "hr": 90})

    state = ingest_log.get_patient_states()["P1"]

    assert state["_ts"] == later.isoformat()


def test_later_empty_values_do_not_erase_state(ingest_log: IngestLog) -> None:
    ingest_log.append({"id": "P1", "diagnosis": "Sepsis", "hr": 120})
    ingest_log.append({"id": "P1", "diagnosis": "", "hr": None, "spo2": 91})

    state = ingest_log.get_patient_states()["P1"]

    assert state["diagnosis"] == "Sepsis"
    assert state["hr"] == 120
    assert state["spo2"] == 91


def test_patient_type_is_sticky(ingest_log: IngestLog) -> None:
    ingest_log.append({"id": "P1", "diagnosis": "Sepsis"})
    ingest_log.append({"id": "P1", "spo2": 90})

    assert ingest_log.get_patient_states()["P1"]["_type"] == "patient"


def test_later_patient_record_promotes_state(ingest_log: IngestLog) -> None:
    ingest_log.append({"id": "P1", "spo2": 90})
    ingest_log.append({"id": "P1", "age": 71})

    assert ingest_log.get_patient_states()["P1"]["_type"] == "patient"


def test_listeners_run_after_successful_append(ingest_log: IngestLog) -> None:
    seen: list[str] = []
    ingest_log.add_listener(lambda record: seen.append(record.record_id))

    ingest_log.append({"id": "P1"})
    with pytest.raises(ParseError):
        ingest_log.append("not a document")

    assert seen == ["P1"]


def test_ingest_batch_reports_rejections(ingest_log: IngestLog) -> None:
    result = ingest_log.ingest([{"id": "P1", "age": 30}, 17, {"id": "P2", "age": 44}])

    assert result.ingested == 2
    assert [r.record_id for r in result.records] == ["P1", "P2"]
    assert [r.index for r in result.rejected] == [1]
    assert len(ingest_log.read_log()) == 2


def test_ingest_ndjson_keeps_good_lines(ingest_log: IngestLog) -> None:
    result = ingest_log.ingest('{"id": "P1", "age": 30}\nnot json\n{"id": "P2", "age": 31}\n')

    assert [r.record_id for r in result.records] == ["P1", "P2"]
    assert len(result.rejected) == 1


def test_ingest_csv(ingest_log: IngestLog) -> None:
    result = ingest_log.ingest("patient_id,diagnosis,severity\nA1,Sepsis,9\nA2,Asthma,3\n")

    assert [r.record_type for r in result.records] == [RecordType.PATIENT, RecordType.PATIENT]
    patients = {pid: normalize_patient(s) for pid, s in ingest_log.get_patient_states().items()}
    assert patients["A1"].severity_score == 9
    assert patients["A2"].condition_category == "respiratory"


def test_ingest_unparseable_document_appends_nothing(ingest_log: IngestLog) -> None:
    with pytest.raises(ParseError):
        ingest_log.ingest("[{")

    assert ingest_log.read_log() == []


def test_ingest_truncated_json_object_appends_nothing(ingest_log: IngestLog) -> None:
    with pytest.raises(ParseError):
        ingest_log.ingest('{\n  "id": "P1",\n  "age": 40,\n')

    assert ingest_log.read_log() == []
