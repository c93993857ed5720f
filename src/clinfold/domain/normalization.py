"""Pure normalization of arbitrary clinical documents into ``Patient`` values.

Every accepted alias is enumerated explicitly in the tables below. Field-level
anomalies never raise; they degrade to the documented defaults so ingestion
favours completeness over rejection. Only a top-level document that is not a
mapping is refused with ``ParseError``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, cast

from clinfold.domain.clock import epoch_ms, utcnow
from clinfold.domain.errors import ParseError
from clinfold.domain.model.enums import Gender
from clinfold.domain.model.patient import Labs, Patient, Vitals

if TYPE_CHECKING:
    from collections.abc import Sequence

    from clinfold.domain.clock import Clock

type Document = Mapping[str, object]

ID_ALIASES: tuple[str, ...] = (
    "patient_id",
    "id",
    "mrn",
    "patientId",
    "subject_id",
    "encounter_id",
)
DIAGNOSIS_ALIASES: tuple[str, ...] = ("primary_diagnosis", "diagnosis", "dx", "chief_complaint")
GENDER_ALIASES: tuple[str, ...] = ("gender", "sex")
SEVERITY_ALIASES: tuple[str, ...] = ("severity_score", "severity", "acuity")
CRITICAL_ALIASES: tuple[str, ...] = ("critical_flag", "critical", "icu")
MEDICATION_ALIASES: tuple[str, ...] = ("medications", "meds", "drugs")
BLOOD_PRESSURE_ALIASES: tuple[str, ...] = ("bp", "blood_pressure")
SYSTOLIC_ALIASES: tuple[str, ...] = ("systolic_bp", "sbp", "systolic")
DIASTOLIC_ALIASES: tuple[str, ...] = ("diastolic_bp", "dbp", "diastolic")

# Order matters: the first table entry with a matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("infectious", ("sepsis", "pneumonia", "infection")),
    ("cardiac", ("heart", "cardiac", "mi", "chf")),
    ("respiratory", ("respiratory", "copd", "asthma")),
    ("metabolic", ("diabetes", "metabolic")),
    ("gi", ("liver", "gi", "bowel")),
    ("neuro", ("stroke", "neuro")),
    ("trauma", ("trauma", "fracture", "injury")),
    ("oncology", ("cancer", "malignant", "tumor")),
)
DEFAULT_CATEGORY = "other"

VITALS_ALIASES: dict[str, tuple[str, ...]] = {
    "spo2": ("spo2", "o2sat", "oxygen_saturation"),
    "heart_rate": ("heart_rate", "hr", "pulse"),
    "oxygen_flow": ("oxygen_flow", "o2_flow", "fio2"),
    "temperature": ("temperature", "temp"),
    "respiratory_rate": ("respiratory_rate", "rr", "resp_rate"),
}
RESPIRATORY_STATUS_ALIASES: tuple[str, ...] = ("respiratory_status", "resp_status")

LABS_ALIASES: dict[str, tuple[str, ...]] = {
    "hemoglobin": ("hemoglobin", "hgb", "hb"),
    "wbc": ("wbc", "white_blood_cells"),
    "rbc": ("rbc", "red_blood_cells"),
    "platelets": ("platelets", "plt"),
    "hematocrit": ("hematocrit", "hct"),
    "mcv": ("mcv",),
    "mch": ("mch",),
    "mchc": ("mchc",),
    "rdw": ("rdw",),
    "neutrophils": ("neutrophils", "neut"),
    "lymphocytes": ("lymphocytes", "lymph"),
    "monocytes": ("monocytes", "mono"),
    "eosinophils": ("eosinophils", "eos"),
    "basophils": ("basophils", "baso"),
    "creatinine": ("creatinine", "cr"),
    "bun": ("bun",),
    "glucose": ("glucose", "glu", "bg"),
    "sodium": ("sodium", "na"),
    "potassium": ("potassium", "k"),
    "lactate": ("lactate", "lac"),
}

TRUTHY_STRINGS = frozenset({"true", "1", "yes", "y"})
MALE_CODES = frozenset({"M", "MALE", "0", "1"})
FEMALE_CODES = frozenset({"F", "FEMALE", "2"})

DEFAULT_SEVERITY = 5
MIN_SEVERITY = 1
MAX_SEVERITY = 10

_BLOOD_PRESSURE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)")


def is_absent(value: object) -> bool:
    """Return ``True`` for values that carry no information (``None`` or ``""``)."""

    return value is None or value == ""


def first_present(document: Document, aliases: Sequence[str]) -> object | None:
    for alias in aliases:
        value = document.get(alias)
        if not is_absent(value):
            return value
    return None


def coerce_number(value: object) -> float | None:
    """Coerce a measurement; zero is a valid reading and is preserved."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def coerce_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, float):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return False


def coerce_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def coerce_list(value: object) -> list[str]:
    """Split composite strings on ``|`` (preferred) or ``,``; keep lists as strings."""

    if is_absent(value):
        return []
    if isinstance(value, list | tuple):
        items = [coerce_text(item) for item in cast("list[object]", value) if item is not None]
        return [item for item in items if item]
    text = coerce_text(value)
    if "|" in text:
        parts = text.split("|")
    elif "," in text:
        parts = text.split(",")
    else:
        parts = [text]
    return [part.strip() for part in parts if part.strip()]


def normalize_gender(value: object) -> Gender:
    code = coerce_text(value).upper()
    if code in MALE_CODES:
        return Gender.MALE
    if code in FEMALE_CODES:
        return Gender.FEMALE
    return Gender.UNKNOWN


def normalize_severity(value: object) -> int:
    score = coerce_number(value)
    if score is None:
        return DEFAULT_SEVERITY
    return max(MIN_SEVERITY, min(MAX_SEVERITY, round(score)))


def age_to_bucket(age: int) -> str:
    if age <= 0:
        return "unknown"
    if age < 18:
        return "0-17"
    if age <= 30:
        return "18-30"
    if age <= 45:
        return "31-45"
    if age <= 60:
        return "46-60"
    if age <= 75:
        return "61-75"
    return "76+"


def infer_category(diagnosis: str) -> str:
    lowered = diagnosis.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def resolve_identity(document: Document) -> str | None:
    value = first_present(document, ID_ALIASES)
    text = coerce_text(value)
    return text or None


def split_blood_pressure(value: object) -> tuple[float | None, float | None]:
    match = _BLOOD_PRESSURE_PATTERN.search(coerce_text(value))
    if match is None:
        return None, None
    return coerce_number(match.group(1)), coerce_number(match.group(2))


def normalize_patient(document: object, *, clock: Clock = utcnow) -> Patient:
    """Map an arbitrary document onto the canonical ``Patient`` shape."""

    if not isinstance(document, Mapping):
        raise ParseError(f"Expected a mapping, got {type(document).__name__}")
    doc: Document = document  # pyright: ignore[reportUnknownVariableType]

    patient_id = resolve_identity(doc) or f"P{epoch_ms(clock())}"
    age_value = coerce_number(doc.get("age"))
    age = round(age_value) if age_value is not None and age_value > 0 else 0
    diagnosis = coerce_text(first_present(doc, DIAGNOSIS_ALIASES)) or "Unknown"
    explicit_category = coerce_text(first_present(doc, ("condition_category", "category")))

    return Patient(
        patient_id=patient_id,
        age=age,
        age_bucket=coerce_text(doc.get("age_bucket")) or age_to_bucket(age),
        gender=normalize_gender(first_present(doc, GENDER_ALIASES)),
        blood_type=_text_or(doc, ("blood_type", "bloodType"), "Unknown"),
        primary_diagnosis=diagnosis,
        icd9_code=_text_or(doc, ("icd9_code", "icd9", "icd", "code"), ""),
        secondary_diagnoses=tuple(
            coerce_list(first_present(doc, ("secondary_diagnoses", "diagnoses", "comorbidities")))
        ),
        condition_category=explicit_category or infer_category(diagnosis),
        insurance=_text_or(doc, ("insurance", "payer"), "Unknown"),
        admission_type=_text_or(doc, ("admission_type", "admit_type"), "UNKNOWN"),
        vitals=_extract_vitals(doc),
        labs=_extract_labs(doc),
        medications=tuple(coerce_list(first_present(doc, MEDICATION_ALIASES))),
        allergies=tuple(coerce_list(doc.get("allergies"))),
        severity_score=normalize_severity(first_present(doc, SEVERITY_ALIASES)),
        critical_flag=coerce_bool(first_present(doc, CRITICAL_ALIASES)),
    )


def _text_or(document: Document, aliases: Sequence[str], default: str) -> str:
    return coerce_text(first_present(document, aliases)) or default


def _sources(document: Document, nested_key: str) -> list[Document]:
    nested = document.get(nested_key)
    if isinstance(nested, Mapping):
        return [nested, document]  # pyright: ignore[reportUnknownVariableType]
    return [document]


def _lookup_number(sources: Sequence[Document], aliases: Sequence[str]) -> float | None:
    for source in sources:
        value = coerce_number(first_present(source, aliases))
        if value is not None:
            return value
    return None


def _blood_pressure(sources: Sequence[Document]) -> tuple[float | None, float | None]:
    systolic: float | None = None
    diastolic: float | None = None
    for source in sources:
        combined = first_present(source, BLOOD_PRESSURE_ALIASES)
        if combined is not None:
            split_systolic, split_diastolic = split_blood_pressure(combined)
            systolic = systolic if systolic is not None else split_systolic
            diastolic = diastolic if diastolic is not None else split_diastolic
        if systolic is None:
            systolic = coerce_number(first_present(source, SYSTOLIC_ALIASES))
        if diastolic is None:
            diastolic = coerce_number(first_present(source, DIASTOLIC_ALIASES))
        if systolic is not None and diastolic is not None:
            break
    return systolic, diastolic


def _extract_vitals(document: Document) -> Vitals:
    sources = _sources(document, "vitals")
    systolic, diastolic = _blood_pressure(sources)
    status = ""
    for source in sources:
        status = coerce_text(first_present(source, RESPIRATORY_STATUS_ALIASES))
        if status:
            break
    return Vitals(
        **{field: _lookup_number(sources, aliases) for field, aliases in VITALS_ALIASES.items()},
        systolic_bp=systolic,
        diastolic_bp=diastolic,
        respiratory_status=status or "unknown",
    )


def _extract_labs(document: Document) -> Labs:
    sources = _sources(document, "labs")
    return Labs(
        **{field: _lookup_number(sources, aliases) for field, aliases in LABS_ALIASES.items()}
    )


__all__ = [
    "CATEGORY_KEYWORDS",
    "ID_ALIASES",
    "age_to_bucket",
    "coerce_bool",
    "coerce_list",
    "coerce_number",
    "infer_category",
    "is_absent",
    "normalize_gender",
    "normalize_patient",
    "normalize_severity",
    "resolve_identity",
]
