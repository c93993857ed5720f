from __future__ import annotations

from typing import TYPE_CHECKING

from clinfold.domain.credentials import CredentialIndex, extract_credential
from clinfold.domain.model.records import Credential

if TYPE_CHECKING:
    from clinfold.domain.ingest import IngestLog


def test_extract_credential_requires_full_triple() -> None:
    assert extract_credential({"username": "u", "password": "p", "id": "P1"}) == (
        "u",
        Credential(secret="p", patient_id="P1"),
    )
    assert extract_credential({"username": "u", "secret": "s", "mrn": "M1"}) == (
        "u",
        Credential(secret="s", patient_id="M1"),
    )
    assert extract_credential({"username": "u", "password": "p"}) is None
    assert extract_credential({"username": "", "password": "p", "id": "P1"}) is None
    assert extract_credential({"password": "p", "id": "P1"}) is None


def test_hydrates_from_log(ingest_log: IngestLog) -> None:
    ingest_log.append({"id": "P1", "age": 50, "username": "case-p1", "password": "pw1"})
    ingest_log.append({"id": "P2", "age": 51})
    index = CredentialIndex(ingest_log)

    assert index.get("case-p1") == Credential(secret="pw1", patient_id="P1")
    assert index.has("case-p1")
    assert not index.has("case-p2")
    assert index.has_credentials_for_patient("P1")
    assert not index.has_credentials_for_patient("P2")


def test_hydrates_only_once(ingest_log: IngestLog) -> None:
    index = CredentialIndex(ingest_log)
    assert index.load_all() == {}

    # no listener registered: the index does not rescan the log
    ingest_log.append({"id": "P1", "username": "late", "password": "pw"})

    assert index.get("late") is None


def test_listener_refreshes_loaded_index(ingest_log: IngestLog) -> None:
    index = CredentialIndex(ingest_log)
    ingest_log.add_listener(index.on_record_appended)
    index.load_all()

    ingest_log.append({"id": "P1", "username": "late", "password": "pw"})

    assert index.get("late") == Credential(secret="pw", patient_id="P1")


def test_later_records_override_earlier_ones(ingest_log: IngestLog) -> None:
    ingest_log.append({"id": "P1", "username": "u", "password": "old"})
    ingest_log.append({"id": "P1", "username": "u", "password": "new"})

    assert CredentialIndex(ingest_log).get("u") == Credential(secret="new", patient_id="P1")


def test_set_is_in_memory_only(ingest_log: IngestLog) -> None:
    index = CredentialIndex(ingest_log)

    index.set("manual", Credential(secret="s", patient_id="P7"))

    assert index.get("manual") == Credential(secret="s", patient_id="P7")
    assert ingest_log.read_log() == []
    assert CredentialIndex(ingest_log).get("manual") is None


def test_load_all_returns_a_copy(ingest_log: IngestLog) -> None:
    index = CredentialIndex(ingest_log)
    snapshot = index.load_all()

    snapshot["intruder"] = Credential(secret="x", patient_id="P0")

    assert not index.has("intruder")
