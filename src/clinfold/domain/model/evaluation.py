"""Evaluation records produced by downstream analysis and kept in their own log."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field


class PatientSummary(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    summary: str = ""
    diagnosis: str = ""
    category: str = ""
    severity: int | None = None
    critical: bool | None = None


class StructuredPayload(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    runs: list[dict[str, object]] = Field(default_factory=list[dict[str, object]])
    findings: list[dict[str, object]] = Field(default_factory=list[dict[str, object]])
    conflicts: list[dict[str, object]] = Field(default_factory=list[dict[str, object]])
    follow_ups: list[dict[str, object]] = Field(
        default_factory=list[dict[str, object]], alias="followUps"
    )


class EvaluationRecord(BaseModel):
    """One stored evaluation; unknown keys are carried through untouched."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="_id")
    ts: datetime = Field(alias="_ts")
    patient_id: str = Field(alias="patientId", min_length=1)
    patient: PatientSummary | None = None
    scenario: dict[str, object] | None = None
    specialists: list[dict[str, object]] | None = None
    structured: StructuredPayload | None = None
    timestamp: datetime | None = None

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


__all__ = ["EvaluationRecord", "PatientSummary", "StructuredPayload"]
