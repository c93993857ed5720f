"""Per-patient credential lookup derived from the ingestion log."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from clinfold.domain.model.records import Credential
from clinfold.domain.normalization import coerce_text, first_present, resolve_identity

if TYPE_CHECKING:
    from collections.abc import Mapping

    from clinfold.domain.ingest import IngestLog
    from clinfold.domain.model.records import RawRecord

log = getLogger(__name__)

SECRET_FIELDS: tuple[str, ...] = ("password", "secret")


def extract_credential(fields: Mapping[str, object]) -> tuple[str, Credential] | None:
    """Return ``(username, credential)`` when ``fields`` carries a full triple."""

    username = coerce_text(fields.get("username"))
    secret = coerce_text(first_present(fields, SECRET_FIELDS))
    patient_id = resolve_identity(fields)
    if not username or not secret or patient_id is None:
        return None
    return username, Credential(secret=secret, patient_id=patient_id)


class CredentialIndex:
    """Lazily hydrated username -> credential map.

    The first read scans the ingestion log once. Afterwards the index only
    changes through :meth:`set` and through :meth:`on_record_appended`, which
    the repository context registers as an ingest listener.
    """

    def __init__(self, ingest_log: IngestLog) -> None:
        self._ingest_log = ingest_log
        self._credentials: dict[str, Credential] | None = None

    def _loaded(self) -> dict[str, Credential]:
        if self._credentials is None:
            credentials: dict[str, Credential] = {}
            for record in self._ingest_log.read_log():
                found = extract_credential(record.fields)
                if found is not None:
                    credentials[found[0]] = found[1]
            log.debug("Hydrated %d credentials from the ingest log", len(credentials))
            self._credentials = credentials
        return self._credentials

    def get(self, username: str) -> Credential | None:
        return self._loaded().get(username)

    def set(self, username: str, credential: Credential) -> None:
        """Upsert in memory only; nothing is appended to the log."""

        self._loaded()[username] = credential

    def has(self, username: str) -> bool:
        return username in self._loaded()

    def has_credentials_for_patient(self, patient_id: str) -> bool:
        return any(c.patient_id == patient_id for c in self._loaded().values())

    def load_all(self) -> dict[str, Credential]:
        return dict(self._loaded())

    def on_record_appended(self, record: RawRecord) -> None:
        if self._credentials is None:
            return
        found = extract_credential(record.fields)
        if found is not None:
            self._credentials[found[0]] = found[1]


__all__ = ["CredentialIndex", "extract_credential"]
