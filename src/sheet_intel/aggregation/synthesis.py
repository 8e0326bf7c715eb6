"""Whole-collection synthesis: meta-analysis, strategic dossiers, column summaries.

Each operation is a pure function of its inputs plus one model call. Empty
input returns a sentinel without calling the model.
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence, TypeVar

from pydantic import BaseModel

from sheet_intel.connectors.gsheets.parsers import column_letter
from sheet_intel.errors import SheetIntelError, SynthesisError
from sheet_intel.llm import prompts
from sheet_intel.llm.backends import GenerationRequest, ModelBackend, default_model
from sheet_intel.llm.decoding import decode_model_json
from sheet_intel.llm.schemas import COLUMN_SUMMARY_SCHEMA, DOSSIERS_SCHEMA, META_SCHEMA
from sheet_intel.models.analysis import (
    AnalysisResult,
    ColumnSummary,
    MetaAnalysis,
    StrategicDossiers,
)
from sheet_intel.models.record import SheetRecord
from sheet_intel.settings import PromptSet

if TYPE_CHECKING:
    from sheet_intel.settings import Settings

logger = logging.getLogger(__name__)

ViewT = TypeVar("ViewT", bound=BaseModel)


def _fmt_number(value: float) -> str:
    return f"{value:g}"


def render_meta_data(results: Sequence[AnalysisResult]) -> str:
    return prompts.RECORD_SEPARATOR.join(f"Summary: {r.summary}" for r in results)


def render_dossier_data(results: Sequence[AnalysisResult]) -> str:
    return prompts.RECORD_SEPARATOR.join(
        f"Sentiment: {_fmt_number(r.metrics.customer_sentiment)}%, Summary: {r.summary}"
        for r in results
    )


def column_display_name(index: int, column_names: Sequence[str]) -> str:
    """Name from column_names, else "Column <letter>"."""
    if 0 <= index < len(column_names) and (column_names[index] or "").strip():
        return column_names[index].strip()
    return f"Column {column_letter(index)}"


def render_rows(
    rows: Sequence[Sequence[str]],
    column_indices: Sequence[int],
    column_names: Sequence[str],
) -> str:
    """One labeled block per row with only the selected columns."""
    blocks: list[str] = []
    for n, row in enumerate(rows, start=1):
        lines = [f"Row {n}:"]
        for index in column_indices:
            value = row[index] if 0 <= index < len(row) else ""
            lines.append(f"{column_display_name(index, column_names)}: {value}")
        blocks.append("\n".join(lines))
    return prompts.RECORD_SEPARATOR.join(blocks)


class Synthesizer:
    """Runs the three aggregation calls against a model backend."""

    def __init__(
        self,
        backend: ModelBackend,
        *,
        model: Optional[str] = None,
        prompt_set: Optional[PromptSet] = None,
    ):
        self.backend = backend
        self.model = model or default_model(backend.provider)
        self.prompts = prompt_set or PromptSet()

    @classmethod
    def from_settings(cls, backend: ModelBackend, settings: "Settings") -> "Synthesizer":
        return cls(
            backend,
            model=settings.synthesis_model or settings.analysis_model,
            prompt_set=settings.prompts,
        )

    def _run(
        self,
        view: str,
        prompt: str,
        system_instruction: str,
        schema: dict,
        model_cls: type[ViewT],
    ) -> ViewT:
        request = GenerationRequest(
            model=self.model,
            prompt=prompt,
            system_instruction=system_instruction,
            schema=schema,
            schema_name=view,
        )
        try:
            raw = self.backend.generate(request)
            return decode_model_json(raw, model_cls)
        except SheetIntelError as e:
            logger.warning("%s synthesis failed: %s", view, e)
            raise SynthesisError(view, e) from e

    def synthesize_meta(
        self,
        results: Sequence[AnalysisResult],
        prompt: Optional[str] = None,
    ) -> MetaAnalysis:
        """Feature cards and executive narrative, guided by the user prompt."""
        if not results:
            return MetaAnalysis.empty()
        return self._run(
            "meta_analysis",
            prompts.META_TEMPLATE.format(
                prompt=(prompt or "").strip() or self.prompts.default_meta_prompt,
                data=render_meta_data(results),
            ),
            self.prompts.meta,
            META_SCHEMA,
            MetaAnalysis,
        )

    def synthesize_dossiers(self, results: Sequence[AnalysisResult]) -> StrategicDossiers:
        """Yes/no narrative, opportunities/threats, act-now items."""
        if not results:
            return StrategicDossiers.empty()
        return self._run(
            "strategic_dossiers",
            prompts.DOSSIERS_TEMPLATE.format(data=render_dossier_data(results)),
            self.prompts.dossiers,
            DOSSIERS_SCHEMA,
            StrategicDossiers,
        )

    def synthesize_column_summary(
        self,
        rows: Sequence[Sequence[str]],
        column_indices: Sequence[int],
        column_names: Sequence[str],
    ) -> ColumnSummary:
        """Themes/summary/insights over the selected columns of every row."""
        if not rows:
            return ColumnSummary.empty()
        return self._run(
            "column_summary",
            prompts.COLUMN_SUMMARY_TEMPLATE.format(
                data=render_rows(rows, column_indices, column_names)
            ),
            self.prompts.column_summary,
            COLUMN_SUMMARY_SCHEMA,
            ColumnSummary,
        )

    def synthesize_columns_by_name(
        self,
        records: Sequence[SheetRecord],
        labels: Sequence[str],
        selected: Sequence[str],
    ) -> ColumnSummary:
        """
        Column summary over records, choosing columns by label.
        Unknown labels raise ValueError before any model call.
        """
        lookup = {label.casefold(): i for i, label in reversed(list(enumerate(labels)))}
        missing = [name for name in selected if name.casefold() not in lookup]
        if missing:
            raise ValueError(f"Unknown column(s): {missing}. Available: {list(labels)}")
        indices = [lookup[name.casefold()] for name in selected]
        rows = [record.values_for(list(labels)) for record in records]
        return self.synthesize_column_summary(rows, indices, labels)
