"""Tests for whole-collection synthesis and the derived view cache."""

import pytest

from sheet_intel.aggregation import DerivedViewCache, Synthesizer, collection_fingerprint
from sheet_intel.aggregation.synthesis import column_display_name, render_dossier_data, render_rows
from sheet_intel.errors import SynthesisError, TransportError
from sheet_intel.models import AnalysisResult, ColumnSummary, MetaAnalysis, MetricSet, StrategicDossiers
from sheet_intel.models.record import SheetRecord
from sheet_intel.settings import PromptSet
from tests.conftest import FakeBackend


def _result(summary: str = "s", sentiment: float = 80) -> AnalysisResult:
    metrics = MetricSet(conversion_probability=50, customer_sentiment=sentiment, churn_risk=5)
    return AnalysisResult(summary=summary, metrics=metrics)


class TestRendering:
    """Tests for prompt data rendering."""

    def test_dossier_data(self) -> None:
        text = render_dossier_data([_result("good", 80), _result("meh", 42.5)])
        assert text == "Sentiment: 80%, Summary: good\n---\nSentiment: 42.5%, Summary: meh"

    def test_column_name_fallback(self) -> None:
        assert column_display_name(0, ["Notes"]) == "Notes"
        assert column_display_name(1, ["Notes", ""]) == "Column B"
        assert column_display_name(27, []) == "Column AB"

    def test_render_rows_selected_columns_only(self) -> None:
        text = render_rows([["a", "b", "c"], ["d", "e"]], [0, 2], ["Name", "Age", ""])
        assert text == "Row 1:\nName: a\nColumn C: c\n---\nRow 2:\nName: d\nColumn C: "


class TestSynthesizer:
    """Tests for Synthesizer operations."""

    def test_empty_inputs_make_no_calls(self) -> None:
        backend = FakeBackend()
        synth = Synthesizer(backend)
        assert synth.synthesize_meta([]) == MetaAnalysis.empty()
        assert synth.synthesize_dossiers([]) == StrategicDossiers.empty()
        assert synth.synthesize_column_summary([], [0], ["A"]) == ColumnSummary.empty()
        assert backend.calls == []

    def test_meta_uses_prompt_or_default(self) -> None:
        backend = FakeBackend()
        synth = Synthesizer(backend, prompt_set=PromptSet(default_meta_prompt="Default focus"))
        meta = synth.synthesize_meta([_result("alpha")], prompt="  ")
        assert meta.top_features[0].title == "SSO"
        assert "Default focus" in backend.calls[0].prompt
        assert "Summary: alpha" in backend.calls[0].prompt

        synth.synthesize_meta([_result("alpha")], prompt="Pricing only")
        assert "Pricing only" in backend.calls[1].prompt

    def test_dossiers(self) -> None:
        dossiers = Synthesizer(FakeBackend()).synthesize_dossiers([_result()])
        assert 6 <= len(dossiers.act_now) <= 8

    def test_failure_wrapped(self) -> None:
        backend = FakeBackend({"meta_analysis": TransportError("down")})
        with pytest.raises(SynthesisError) as exc_info:
            Synthesizer(backend).synthesize_meta([_result()])
        assert exc_info.value.view == "meta_analysis"
        assert isinstance(exc_info.value.cause, TransportError)

    def test_bad_output_wrapped(self) -> None:
        backend = FakeBackend({"strategic_dossiers": "[]"})
        with pytest.raises(SynthesisError):
            Synthesizer(backend).synthesize_dossiers([_result()])

    @pytest.mark.parametrize("reply", [{}, {"summary": "x"}, {"executiveNarrative": "only"}])
    def test_incomplete_reply_is_rejected(self, reply: dict) -> None:
        """A reply missing required fields never yields a partially populated view."""
        rows = [["a"]]
        for view, call in (
            ("meta_analysis", lambda s: s.synthesize_meta([_result()])),
            ("strategic_dossiers", lambda s: s.synthesize_dossiers([_result()])),
            ("column_summary", lambda s: s.synthesize_column_summary(rows, [0], ["A"])),
        ):
            synth = Synthesizer(FakeBackend({view: reply}))
            with pytest.raises(SynthesisError) as exc_info:
                call(synth)
            assert exc_info.value.view == view

    def test_columns_by_name(self) -> None:
        backend = FakeBackend()
        records = [
            SheetRecord(row_index=0, data={"Name": "Ann", "Notes": "pricey"}),
            SheetRecord(row_index=1, data={"Name": "Bo", "Notes": "slow setup"}),
        ]
        summary = Synthesizer(backend).synthesize_columns_by_name(records, ["Name", "Notes"], ["notes"])
        assert summary.key_themes == ["pricing", "onboarding"]
        prompt = backend.calls[0].prompt
        assert "Notes: pricey" in prompt
        assert "Name: Ann" not in prompt

    def test_columns_by_name_unknown(self) -> None:
        backend = FakeBackend()
        with pytest.raises(ValueError):
            Synthesizer(backend).synthesize_columns_by_name([], ["Name"], ["Missing"])
        assert backend.calls == []


class TestDerivedViewCache:
    """Tests for DerivedViewCache."""

    def test_fingerprint_order_insensitive(self) -> None:
        a, b = _result(), _result()
        assert collection_fingerprint([a, b]) == collection_fingerprint([b, a])
        assert collection_fingerprint([a]) != collection_fingerprint([a, b])

    def test_meta_keyed_by_prompt(self) -> None:
        cache = DerivedViewCache()
        meta = MetaAnalysis(top_features=[], executive_narrative="n")
        cache.put_meta("fp", "p1", meta)
        assert cache.get_meta("fp", "p1") == meta
        assert cache.get_meta("fp", "p2") is None
        assert cache.last_meta == meta

    def test_invalidate(self) -> None:
        cache = DerivedViewCache()
        cache.put_dossiers("fp", StrategicDossiers.empty())
        cache.invalidate()
        assert cache.get_dossiers("fp") is None
        assert cache.last_dossiers is None
