"""Per-record structured extraction against the model backend.

Each included record gets one request. Failures are captured per record and
returned to the caller; one bad record never aborts the batch.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union

from sheet_intel.classifier import ClassifiedRecord
from sheet_intel.errors import RecordAnalysisError, SheetIntelError, TransportError
from sheet_intel.llm import prompts
from sheet_intel.llm.backends import GenerationRequest, ModelBackend, default_model
from sheet_intel.llm.decoding import decode_model_json
from sheet_intel.llm.schemas import ANALYSIS_SCHEMA
from sheet_intel.models.analysis import AnalysisPayload, AnalysisResult

if TYPE_CHECKING:
    from sheet_intel.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class RecordFailure:
    """One record that could not be analyzed."""

    row_index: int
    label: str
    error_type: str  # RequestTimeout | TransportError | SchemaViolation | ...
    message: str


@dataclass
class AnalysisBatch:
    """Outcome of analyzing a batch: successes, failures and cancellation state."""

    results: list[AnalysisResult] = field(default_factory=list)
    failures: list[RecordFailure] = field(default_factory=list)
    not_attempted: int = 0
    cancelled: bool = False

    @property
    def attempted(self) -> int:
        return len(self.results) + len(self.failures)

    @property
    def succeeded(self) -> int:
        return len(self.results)


_Outcome = Union[AnalysisResult, RecordFailure, None]


class AnalysisOrchestrator:
    """
    Issues one extraction request per record with bounded parallelism.
    Result order is not guaranteed to match input order when max_workers > 1.
    """

    def __init__(
        self,
        backend: ModelBackend,
        *,
        model: Optional[str] = None,
        system_instruction: str = prompts.ANALYSIS_SYSTEM,
        max_workers: int = 4,
    ):
        self.backend = backend
        self.model = model or default_model(backend.provider)
        self.system_instruction = system_instruction
        self.max_workers = max(1, max_workers)

    @classmethod
    def from_settings(cls, backend: ModelBackend, settings: "Settings") -> "AnalysisOrchestrator":
        return cls(
            backend,
            model=settings.analysis_model,
            system_instruction=settings.prompts.analysis,
            max_workers=settings.max_workers,
        )

    def build_request(self, item: ClassifiedRecord) -> GenerationRequest:
        return GenerationRequest(
            model=self.model,
            prompt=prompts.ANALYSIS_TEMPLATE.format(
                category=item.category.value, content=item.content
            ),
            system_instruction=self.system_instruction,
            schema=ANALYSIS_SCHEMA,
            schema_name="record_analysis",
        )

    def analyze_record(self, item: ClassifiedRecord) -> AnalysisResult:
        """
        Analyze one record.
        Raises RecordAnalysisError on transport failure, SchemaViolation on bad output.
        """
        try:
            raw = self.backend.generate(self.build_request(item))
        except TransportError as e:
            raise RecordAnalysisError(item.label, e) from e
        payload = decode_model_json(raw, AnalysisPayload)
        return AnalysisResult(
            category=item.category,
            label=item.label,
            summary=payload.summary,
            insights=payload.insights,
            metrics=payload.metrics,
            raw_text=item.content,
        )

    def _attempt(
        self,
        item: ClassifiedRecord,
        cancel_event: Optional[threading.Event],
    ) -> _Outcome:
        """Run one record; None means it was not started because of cancellation."""
        if cancel_event is not None and cancel_event.is_set():
            return None
        try:
            return self.analyze_record(item)
        except SheetIntelError as e:
            cause = e.cause if isinstance(e, RecordAnalysisError) else e
            logger.warning("Analysis failed for row %d (%s): %s", item.record.row_index, item.label, e)
            return RecordFailure(
                row_index=item.record.row_index,
                label=item.label,
                error_type=type(cause).__name__,
                message=str(cause),
            )
        except Exception as e:
            logger.exception("Unexpected error analyzing row %d (%s)", item.record.row_index, item.label)
            return RecordFailure(
                row_index=item.record.row_index,
                label=item.label,
                error_type=type(e).__name__,
                message=str(e),
            )

    def _collect(self, batch: AnalysisBatch, outcome: _Outcome) -> None:
        if outcome is None:
            batch.not_attempted += 1
        elif isinstance(outcome, RecordFailure):
            batch.failures.append(outcome)
        else:
            batch.results.append(outcome)

    def analyze_all(
        self,
        items: list[ClassifiedRecord],
        cancel_event: Optional[threading.Event] = None,
    ) -> AnalysisBatch:
        """
        Analyze every item. Never raises for per-record problems.
        After cancel_event is set no new record calls start; in-flight ones finish.
        """
        batch = AnalysisBatch()
        if not items:
            return batch

        if self.max_workers == 1:
            for item in items:
                self._collect(batch, self._attempt(item, cancel_event))
        else:
            # Only this thread touches batch; workers return values.
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = [pool.submit(self._attempt, item, cancel_event) for item in items]
                for future in as_completed(futures):
                    self._collect(batch, future.result())

        batch.cancelled = bool(cancel_event is not None and cancel_event.is_set())
        logger.info(
            "Analyzed %d/%d records (%d failed, %d not attempted)",
            batch.succeeded,
            len(items),
            len(batch.failures),
            batch.not_attempted,
        )
        return batch
