"""Tests for record classification and alias resolution."""

import pytest

from sheet_intel.classifier import (
    FIELD_ALIASES,
    UNKNOWN_LABEL,
    classify_record,
    resolve_category,
    resolve_field,
    select_for_analysis,
)
from sheet_intel.models.analysis import ReportType


class TestResolveField:
    """Tests for resolve_field."""

    def test_alias_order_wins(self) -> None:
        """Transcript beats transcript when both are populated."""
        data = {"transcript": "lower", "Transcript": "upper"}
        assert resolve_field(data, FIELD_ALIASES["content"]) == "upper"

    def test_skips_blank_values(self) -> None:
        """A whitespace-only first alias falls through to the next."""
        data = {"Transcript": "   ", "Text": "from text"}
        assert resolve_field(data, FIELD_ALIASES["content"]) == "from text"

    def test_case_insensitive_fallback(self) -> None:
        """TRANSCRIPT matches the Transcript alias."""
        assert resolve_field({"TRANSCRIPT": "x"}, ("Transcript",)) == "x"

    def test_none_when_absent(self) -> None:
        assert resolve_field({"Other": "x"}, FIELD_ALIASES["content"]) is None

    def test_value_is_trimmed(self) -> None:
        assert resolve_field({"Text": "  hi  "}, FIELD_ALIASES["content"]) == "hi"


class TestResolveCategory:
    """Tests for resolve_category."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Sales Call", ReportType.SALES_CALL),
            ("Customer Feedback", ReportType.CUSTOMER_FEEDBACK),
            ("Process Audit", ReportType.PROCESS_AUDIT),
            (" Process Audit ", ReportType.PROCESS_AUDIT),
            ("process audit", ReportType.SALES_CALL),
            ("Webinar", ReportType.SALES_CALL),
            (None, ReportType.SALES_CALL),
        ],
    )
    def test_case_sensitive_with_default(self, value, expected: ReportType) -> None:
        assert resolve_category(value) == expected


class TestClassifyRecord:
    """Tests for classify_record."""

    def test_sample_record(self, record_factory) -> None:
        """Transcript + Type resolve to Sales Call with the transcript as content."""
        record = record_factory(Transcript="Great demo", Type="Sales Call")
        classified = classify_record(record)
        assert classified.category == ReportType.SALES_CALL
        assert classified.content == "Great demo"
        assert classified.label == UNKNOWN_LABEL

    def test_label_falls_back_to_date(self, record_factory) -> None:
        record = record_factory(Text="hello", date="2024-05-01")
        assert classify_record(record).label == "2024-05-01"

    def test_file_beats_date(self, record_factory) -> None:
        record = record_factory(Text="hello", Date="2024-05-01", File="call-7.txt")
        assert classify_record(record).label == "call-7.txt"

    def test_custom_alias_table(self, record_factory) -> None:
        """Alias table is data and can be replaced."""
        aliases = {"content": ("Notes",), "category": ("Kind",), "label": ("Customer",)}
        record = record_factory(Notes="n", Kind="Customer Feedback", Customer="Acme")
        classified = classify_record(record, aliases)
        assert (classified.content, classified.category, classified.label) == (
            "n",
            ReportType.CUSTOMER_FEEDBACK,
            "Acme",
        )


class TestSelectForAnalysis:
    """Tests for select_for_analysis filtering."""

    def test_blank_content_excluded(self, record_factory) -> None:
        """Five records, two blank → three included, two skipped."""
        records = [
            record_factory(0, Transcript="a"),
            record_factory(1, Transcript=""),
            record_factory(2, Transcript="c"),
            record_factory(3, Transcript="   \n"),
            record_factory(4, Transcript="e"),
        ]
        included, skipped = select_for_analysis(records)
        assert [c.record.row_index for c in included] == [0, 2, 4]
        assert skipped == 2
