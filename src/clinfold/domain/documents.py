"""Decode submitted input documents into individual candidate records."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import cast

from clinfold.domain.errors import ParseError

log = getLogger(__name__)


class DocumentFormat(StrEnum):
    JSON = "json"
    NDJSON = "ndjson"
    CSV = "csv"


@dataclass(frozen=True, slots=True)
class DocumentElement:
    """One element of a decoded document.

    ``error`` is set when the element itself could not be decoded (for example
    a broken NDJSON line); the element is then reported instead of appended.
    """

    index: int
    value: object
    error: str | None = None


def decode_document(
    document: object,
    *,
    format: DocumentFormat | None = None,  # noqa: A002
) -> list[DocumentElement]:
    """Split ``document`` into elements.

    Accepts a mapping, a list of mappings, or text holding JSON (object or
    array), newline-delimited JSON, or CSV with a header row. Raises
    ``ParseError`` only when the outer document cannot be decoded at all.
    """

    if isinstance(document, Mapping):
        return [DocumentElement(0, document)]
    if isinstance(document, list | tuple):
        items = cast("list[object] | tuple[object, ...]", document)
        return [DocumentElement(index, value) for index, value in enumerate(items)]
    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError("Document is not valid UTF-8") from exc
    if not isinstance(document, str):
        raise ParseError(f"Unsupported document type: {type(document).__name__}")
    return decode_text(document, format=format)


def decode_text(
    text: str,
    *,
    format: DocumentFormat | None = None,  # noqa: A002
) -> list[DocumentElement]:
    trimmed = text.strip()
    if not trimmed:
        raise ParseError("Document is empty")
    detected = format or detect_format(trimmed)
    if detected is DocumentFormat.JSON:
        return _decode_json(trimmed)
    if detected is DocumentFormat.NDJSON:
        return _decode_ndjson(trimmed)
    return _decode_csv(trimmed)


def detect_format(text: str) -> DocumentFormat:
    if not text.startswith(("{", "[")):
        return DocumentFormat.CSV
    if text.startswith("{") and "\n" in text:
        try:
            json.loads(text)
        except json.JSONDecodeError:
            if _is_json_object(text.splitlines()[0]):
                return DocumentFormat.NDJSON
    return DocumentFormat.JSON


def _is_json_object(line: str) -> bool:
    try:
        return isinstance(json.loads(line), dict)
    except json.JSONDecodeError:
        return False


def _decode_json(text: str) -> list[DocumentElement]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON document: {exc.msg}") from exc
    if isinstance(parsed, dict):
        return [DocumentElement(0, parsed)]
    if isinstance(parsed, list):
        items = cast("list[object]", parsed)
        return [DocumentElement(index, value) for index, value in enumerate(items)]
    raise ParseError("JSON content must be an object or an array")


def _decode_ndjson(text: str) -> list[DocumentElement]:
    elements: list[DocumentElement] = []
    for index, line in enumerate(line for line in text.splitlines() if line.strip()):
        try:
            elements.append(DocumentElement(index, json.loads(line)))
        except json.JSONDecodeError as exc:
            log.warning("Skipping undecodable NDJSON line %d: %s", index, exc.msg)
            elements.append(DocumentElement(index, line, error=f"Invalid JSON line: {exc.msg}"))
    return elements


def _decode_csv(text: str) -> list[DocumentElement]:
    reader = csv.DictReader(io.StringIO(text), skipinitialspace=True)
    if not reader.fieldnames:
        raise ParseError("CSV document has no header row")
    elements: list[DocumentElement] = []
    try:
        for index, row in enumerate(reader):
            record = {
                key.strip(): value.strip() if isinstance(value, str) else value
                for key, value in row.items()
                if key is not None
            }
            if any(value for value in record.values()):
                elements.append(DocumentElement(index, record))
    except csv.Error as exc:
        raise ParseError(f"Invalid CSV document: {exc}") from exc
    return elements


__all__ = ["DocumentElement", "DocumentFormat", "decode_document", "decode_text", "detect_format"]
