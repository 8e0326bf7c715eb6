"""Resolve content, category and display label from loosely named sheet columns."""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from sheet_intel.models.analysis import ReportType
from sheet_intel.models.record import SheetRecord

# Logical field -> candidate column names, tried in order (first non-empty wins)
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "content": ("Transcript", "transcript", "Text", "text"),
    "category": ("Type", "type", "Category", "category"),
    "label": ("File", "file", "Date", "date"),
}

UNKNOWN_LABEL = "Unknown"

_CATEGORY_BY_VALUE = {t.value: t for t in ReportType}


@dataclass(frozen=True)
class ClassifiedRecord:
    """Record plus the fields resolved for analysis."""

    record: SheetRecord
    content: str
    category: ReportType
    label: str


def resolve_field(
    data: Mapping[str, str],
    aliases: Iterable[str],
) -> Optional[str]:
    """
    First non-empty value among aliases. Each alias is tried as an exact key,
    then case-insensitively against the record's keys (in column order).
    """
    for alias in aliases:
        value = data.get(alias)
        if value is None:
            folded = alias.casefold()
            value = next((v for k, v in data.items() if k.casefold() == folded), None)
        if value is not None and value.strip():
            return value.strip()
    return None


def resolve_category(value: Optional[str]) -> ReportType:
    """Case-sensitive match against ReportType values; default to the first member."""
    if value is None:
        return ReportType.default()
    return _CATEGORY_BY_VALUE.get(value.strip(), ReportType.default())


def classify_record(
    record: SheetRecord,
    aliases: Optional[Mapping[str, tuple[str, ...]]] = None,
) -> ClassifiedRecord:
    """Resolve content, category and label for one record."""
    table = aliases or FIELD_ALIASES
    return ClassifiedRecord(
        record=record,
        content=resolve_field(record.data, table["content"]) or "",
        category=resolve_category(resolve_field(record.data, table["category"])),
        label=resolve_field(record.data, table["label"]) or UNKNOWN_LABEL,
    )


def select_for_analysis(
    records: Iterable[SheetRecord],
    aliases: Optional[Mapping[str, tuple[str, ...]]] = None,
) -> tuple[list[ClassifiedRecord], int]:
    """
    Classify records and drop those with blank content.
    Returns (included, skipped_count).
    """
    included: list[ClassifiedRecord] = []
    skipped = 0
    for record in records:
        classified = classify_record(record, aliases)
        if classified.content:
            included.append(classified)
        else:
            skipped += 1
    return included, skipped
