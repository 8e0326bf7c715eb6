"""Parsing utilities for the gviz export response."""

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from sheet_intel.errors import EmptyResult, MalformedEnvelope, MalformedPayload, RemoteError
from sheet_intel.models.record import SheetRecord
from sheet_intel.models.table import RawTable, SheetCell

from .constants import (
    DATE_LITERAL_PREFIX,
    ENVELOPE_GUARD,
    ENVELOPE_PREFIX,
    ENVELOPE_SUFFIX,
    FALLBACK_CLOSE,
    FALLBACK_OPEN,
    SHEET_ERROR_KEYWORDS,
)

logger = logging.getLogger(__name__)

# Strict match: optional guard comment, known prefix, body, known suffix
_STRICT_ENVELOPE = re.compile(
    r"^\s*(?:" + re.escape(ENVELOPE_GUARD) + r"\s*)?"
    + re.escape(ENVELOPE_PREFIX)
    + r"(?P<body>.*)"
    + re.escape(ENVELOPE_SUFFIX.rstrip(";"))
    + r";?\s*$",
    re.DOTALL,
)


def extract_envelope(text: str) -> str:
    """
    Return the JSON text embedded in the callback envelope.
    Tries the exact envelope first, then the first "({" / last "})" pair.
    """
    match = _STRICT_ENVELOPE.match(text or "")
    if match:
        body = match.group("body").strip()
    else:
        start = (text or "").find(FALLBACK_OPEN)
        end = (text or "").rfind(FALLBACK_CLOSE)
        if start == -1 or end == -1 or end < start:
            raise MalformedEnvelope("Could not locate the embedded JSON object in the response")
        logger.debug("Strict envelope did not match; using delimiter fallback")
        body = text[start + 1 : end + 1].strip()
    if not body:
        raise MalformedEnvelope("Response envelope is empty")
    return body


def _remote_error_message(payload: dict) -> Optional[str]:
    """Upstream error text when the payload reports an error, else None."""
    errors = payload.get("errors")
    if payload.get("status") != "error" and not errors:
        return None
    parts: list[str] = []
    for err in errors or []:
        if not isinstance(err, dict):
            parts.append(str(err))
            continue
        text = err.get("detailed_message") or err.get("message") or err.get("reason")
        if text:
            parts.append(str(text))
    return "; ".join(parts) or "unknown error"


def _looks_like_sheet_error(message: str) -> bool:
    lowered = message.lower()
    return any(kw in lowered for kw in SHEET_ERROR_KEYWORDS)


def unwrap_response(text: str) -> RawTable:
    """
    Decode a raw export response into a RawTable.
    Raises MalformedEnvelope, MalformedPayload, RemoteError or EmptyResult.
    """
    body = extract_envelope(text)
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise MalformedPayload(
            f"Embedded JSON could not be decoded at line {e.lineno} column {e.colno}: {e.msg}"
        ) from e
    if not isinstance(payload, dict):
        raise MalformedPayload("Embedded JSON is not an object")

    remote_message = _remote_error_message(payload)
    if remote_message is not None:
        raise RemoteError(remote_message, sheet_not_found=_looks_like_sheet_error(remote_message))

    table_data = payload.get("table")
    if not isinstance(table_data, dict):
        raise MalformedPayload("Payload has no 'table' object")
    try:
        table = RawTable.model_validate(table_data)
    except ValidationError as e:
        raise MalformedPayload(f"Table structure is invalid: {e.error_count()} error(s)") from e

    if not table.rows:
        raise EmptyResult("Sheet has a header but no data rows")
    return table


def column_letter(index: int) -> str:
    """0-based column index to spreadsheet letters: 0 -> A, 25 -> Z, 26 -> AA."""
    letters = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_labels(table: RawTable) -> list[str]:
    """Label per column: label, else id, else column letter (whitespace stripped)."""
    return [
        (col.label or "").strip() or (col.id or "").strip() or column_letter(i)
        for i, col in enumerate(table.columns)
    ]


def cell_to_text(cell: Optional[SheetCell]) -> str:
    """Render a cell value as the string stored in a record."""
    if cell is None:
        return ""
    value: Any = cell.value
    if value is None:
        return cell.formatted or ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str) and value.startswith(DATE_LITERAL_PREFIX) and cell.formatted:
        return cell.formatted
    return str(value)


def map_rows(table: RawTable) -> list[SheetRecord]:
    """
    Zip column labels with each row's cells, keeping row order.
    Duplicate labels keep the first column's value; missing cells become "".
    """
    labels = column_labels(table)
    records: list[SheetRecord] = []
    for row_index, row in enumerate(table.rows):
        data: dict[str, str] = {}
        for i, label in enumerate(labels):
            if label in data:
                continue
            cell = row.cells[i] if i < len(row.cells) else None
            data[label] = cell_to_text(cell)
        records.append(SheetRecord(row_index=row_index, data=data))
    return records
