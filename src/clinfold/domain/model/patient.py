"""Canonical patient entity produced by the record normalizer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from .enums import Gender


@dataclass(frozen=True, slots=True)
class Vitals:
    spo2: float | None = None
    heart_rate: float | None = None
    systolic_bp: float | None = None
    diastolic_bp: float | None = None
    oxygen_flow: float | None = None
    temperature: float | None = None
    respiratory_rate: float | None = None
    respiratory_status: str = "unknown"


@dataclass(frozen=True, slots=True)
class Labs:
    hemoglobin: float | None = None
    wbc: float | None = None
    rbc: float | None = None
    platelets: float | None = None
    hematocrit: float | None = None
    mcv: float | None = None
    mch: float | None = None
    mchc: float | None = None
    rdw: float | None = None
    neutrophils: float | None = None
    lymphocytes: float | None = None
    monocytes: float | None = None
    eosinophils: float | None = None
    basophils: float | None = None
    creatinine: float | None = None
    bun: float | None = None
    glucose: float | None = None
    sodium: float | None = None
    potassium: float | None = None
    lactate: float | None = None


@dataclass(frozen=True, slots=True)
class Patient:
    """Strictly typed, fully normalized patient view.

    Instances are never stored; the projection rebuilds them from the ingest
    log and replaces them wholesale.
    """

    patient_id: str
    age: int = 0
    age_bucket: str = "unknown"
    gender: Gender = Gender.UNKNOWN
    blood_type: str = "Unknown"
    primary_diagnosis: str = "Unknown"
    icd9_code: str = ""
    secondary_diagnoses: tuple[str, ...] = ()
    condition_category: str = "other"
    insurance: str = "Unknown"
    admission_type: str = "UNKNOWN"
    vitals: Vitals = field(default_factory=Vitals)
    labs: Labs = field(default_factory=Labs)
    medications: tuple[str, ...] = ()
    allergies: tuple[str, ...] = ()
    severity_score: int = 5
    critical_flag: bool = False

    def to_dict(self) -> dict[str, object]:
        """Plain JSON-compatible representation (lists instead of tuples)."""

        data = asdict(self)
        data["gender"] = str(self.gender)
        for key in ("secondary_diagnoses", "medications", "allergies"):
            data[key] = list(data[key])
        return data
