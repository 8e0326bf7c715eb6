"""Tests for per-record analysis orchestration."""

import threading

import pytest

from sheet_intel.analysis import AnalysisOrchestrator
from sheet_intel.classifier import classify_record
from sheet_intel.errors import RecordAnalysisError, RequestTimeout, SchemaViolation
from sheet_intel.models.analysis import ReportType
from tests.conftest import ANALYSIS_OK, FakeBackend


def _items(record_factory, n: int):
    return [
        classify_record(record_factory(i, Transcript=f"call {i}", Type="Process Audit", File=f"f{i}"))
        for i in range(n)
    ]


class TestAnalyzeRecord:
    """Tests for analyze_record."""

    def test_result_fields(self, record_factory) -> None:
        backend = FakeBackend()
        orchestrator = AnalysisOrchestrator(backend, model="m")
        result = orchestrator.analyze_record(_items(record_factory, 1)[0])
        assert result.category == ReportType.PROCESS_AUDIT
        assert result.label == "f0"
        assert result.raw_text == "call 0"
        assert result.summary == ANALYSIS_OK["summary"]
        assert result.metrics.churn_risk == 12

    def test_prompt_carries_category_and_content(self, record_factory) -> None:
        backend = FakeBackend()
        AnalysisOrchestrator(backend, model="m").analyze_record(_items(record_factory, 1)[0])
        request = backend.calls[0]
        assert "Process Audit" in request.prompt
        assert "call 0" in request.prompt
        assert request.schema_name == "record_analysis"
        assert request.model == "m"

    def test_transport_error_wrapped(self, record_factory) -> None:
        backend = FakeBackend({"record_analysis": RequestTimeout("slow")})
        with pytest.raises(RecordAnalysisError) as exc_info:
            AnalysisOrchestrator(backend).analyze_record(_items(record_factory, 1)[0])
        assert isinstance(exc_info.value.cause, RequestTimeout)

    def test_bad_output_is_schema_violation(self, record_factory) -> None:
        backend = FakeBackend({"record_analysis": "not json"})
        with pytest.raises(SchemaViolation):
            AnalysisOrchestrator(backend).analyze_record(_items(record_factory, 1)[0])


class TestAnalyzeAll:
    """Tests for analyze_all."""

    @pytest.mark.parametrize("workers", [1, 4])
    def test_partial_failures_never_raise(self, record_factory, workers: int) -> None:
        """N records with M bad responses give N-M results and M failures."""

        def respond(request):
            if "call 1" in request.prompt or "call 3" in request.prompt:
                return '{"summary": "missing fields"}'
            return ANALYSIS_OK

        backend = FakeBackend({"record_analysis": respond})
        batch = AnalysisOrchestrator(backend, max_workers=workers).analyze_all(
            _items(record_factory, 5)
        )
        assert batch.succeeded == 3
        assert sorted(f.row_index for f in batch.failures) == [1, 3]
        assert all(f.error_type == "SchemaViolation" for f in batch.failures)
        assert batch.attempted == 5
        assert batch.cancelled is False

    def test_transport_failure_records_cause_type(self, record_factory) -> None:
        backend = FakeBackend({"record_analysis": RequestTimeout("slow")})
        batch = AnalysisOrchestrator(backend, max_workers=1).analyze_all(_items(record_factory, 2))
        assert [f.error_type for f in batch.failures] == ["RequestTimeout", "RequestTimeout"]

    def test_unexpected_exception_is_captured(self, record_factory) -> None:
        backend = FakeBackend({"record_analysis": RuntimeError("boom")})
        batch = AnalysisOrchestrator(backend, max_workers=2).analyze_all(_items(record_factory, 2))
        assert len(batch.failures) == 2
        assert batch.failures[0].error_type == "RuntimeError"

    def test_empty_input_makes_no_calls(self) -> None:
        backend = FakeBackend()
        batch = AnalysisOrchestrator(backend).analyze_all([])
        assert batch.attempted == 0
        assert backend.calls == []

    def test_cancel_stops_new_calls(self, record_factory) -> None:
        """Records after the cancel point are counted as not attempted."""
        cancel = threading.Event()

        def respond(request):
            cancel.set()
            return ANALYSIS_OK

        backend = FakeBackend({"record_analysis": respond})
        batch = AnalysisOrchestrator(backend, max_workers=1).analyze_all(
            _items(record_factory, 3), cancel_event=cancel
        )
        assert batch.succeeded == 1
        assert batch.not_attempted == 2
        assert batch.cancelled is True
        assert len(backend.calls) == 1

    def test_worker_bound(self, record_factory) -> None:
        """No more than max_workers calls run at once."""
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}
        release = threading.Event()

        def respond(request):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            release.wait(0.05)
            with lock:
                state["active"] -= 1
            return ANALYSIS_OK

        backend = FakeBackend({"record_analysis": respond})
        batch = AnalysisOrchestrator(backend, max_workers=2).analyze_all(_items(record_factory, 6))
        assert batch.succeeded == 6
        assert state["peak"] <= 2
