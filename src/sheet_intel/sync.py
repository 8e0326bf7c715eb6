"""Sync orchestration: fetch → parse → classify → analyze → aggregate.

One SyncController drives one configured spreadsheet. Fetch and parse
failures end the session in FAILED; per-record and synthesis failures are
reported in the outcome without failing the session.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Mapping, Optional, Sequence

from sheet_intel.aggregation import DerivedViewCache, Synthesizer, collection_fingerprint
from sheet_intel.analysis import AnalysisOrchestrator, RecordFailure
from sheet_intel.classifier import select_for_analysis
from sheet_intel.connectors import BaseSheetSource, GoogleSheetsConnector
from sheet_intel.errors import (
    NotConnected,
    SheetIntelError,
    SheetParseError,
    SyncInProgress,
    SynthesisError,
    TransportError,
)
from sheet_intel.llm.backends import ModelBackend, get_backend
from sheet_intel.models.analysis import (
    AnalysisResult,
    ColumnSummary,
    MetaAnalysis,
    StrategicDossiers,
)
from sheet_intel.models.config import SyncConfig
from sheet_intel.models.record import SheetRecord
from sheet_intel.settings import Settings
from sheet_intel.store import SessionStore

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    ANALYZING = "analyzing"
    AGGREGATING = "aggregating"
    FAILED = "failed"


class SyncStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"  # some records failed
    NO_RESULTS = "no_results"  # connected, but nothing usable
    FAILED = "failed"  # fetch/parse failure
    CANCELLED = "cancelled"


@dataclass
class SyncOutcome:
    """What happened in one session, with attempted vs. succeeded counts."""

    status: SyncStatus = SyncStatus.SUCCESS
    states: list[SyncState] = field(default_factory=lambda: [SyncState.IDLE])
    records_total: int = 0
    skipped_empty: int = 0
    attempted: int = 0
    succeeded: int = 0
    not_attempted: int = 0
    failures: list[RecordFailure] = field(default_factory=list)
    error: Optional[SheetIntelError] = None
    meta: Optional[MetaAnalysis] = None
    synthesis_errors: list[SynthesisError] = field(default_factory=list)

    @property
    def final_state(self) -> SyncState:
        return self.states[-1]

    @property
    def message(self) -> str:
        if self.status == SyncStatus.FAILED and self.error is not None:
            return f"Sync failed: {self.error.user_message()}"
        if self.status == SyncStatus.CANCELLED:
            return f"Sync cancelled after {self.attempted} of {self.attempted + self.not_attempted} records."
        if self.status == SyncStatus.NO_RESULTS:
            return (
                f"Connected, but nothing usable: {self.succeeded} of {self.attempted} records "
                f"analyzed ({self.skipped_empty} rows had no content)."
            )
        return f"Analyzed {self.succeeded} of {self.attempted} records ({len(self.failures)} failed)."


class SyncController:
    """
    Runs sync sessions for the configured spreadsheet and owns the derived-view
    cache. At most one sync runs at a time per controller.
    """

    def __init__(
        self,
        source: BaseSheetSource,
        orchestrator: AnalysisOrchestrator,
        synthesizer: Synthesizer,
        store: SessionStore,
        *,
        aliases: Optional[Mapping[str, tuple[str, ...]]] = None,
    ):
        self.source = source
        self.orchestrator = orchestrator
        self.synthesizer = synthesizer
        self.store = store
        self.aliases = aliases
        self.cache = DerivedViewCache()
        self._state = SyncState.IDLE
        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._reports: list[AnalysisResult] = store.get_reports()
        self._records: list[SheetRecord] = []

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        source: Optional[BaseSheetSource] = None,
        backend: Optional[ModelBackend] = None,
        store: Optional[SessionStore] = None,
    ) -> "SyncController":
        backend = backend or get_backend(settings)
        return cls(
            source or GoogleSheetsConnector(timeout=settings.fetch_timeout),
            AnalysisOrchestrator.from_settings(backend, settings),
            Synthesizer.from_settings(backend, settings),
            store or SessionStore(settings.db_path),
        )

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def config(self) -> SyncConfig:
        return self.store.get_config()

    @property
    def reports(self) -> list[AnalysisResult]:
        return list(self._reports)

    @property
    def records(self) -> list[SheetRecord]:
        """Records from the last successful parse in this process."""
        return list(self._records)

    def _transition(self, outcome: SyncOutcome, state: SyncState) -> None:
        logger.debug("Sync state %s -> %s", self._state.value, state.value)
        self._state = state
        outcome.states.append(state)

    # --- configuration (explicit user actions) ---

    def connect(self, source_id: str, sheet_name: str = "Sheet1") -> SyncConfig:
        """Point the controller at a spreadsheet tab. Cached records belong to the old tab."""
        self._records = []
        return self.store.connect(source_id, sheet_name)

    def set_analysis_prompt(self, prompt: Optional[str]) -> Optional[MetaAnalysis]:
        """
        Save the analysis prompt and re-synthesize the meta-analysis if it changed.
        Returns the current meta-analysis (the previous one if synthesis failed).
        """
        prompt = (prompt or "").strip() or None
        config = self.config
        if config.analysis_prompt != prompt:
            self.store.save_config(config.model_copy(update={"analysis_prompt": prompt}))
            try:
                return self.meta_analysis()
            except SynthesisError:
                return self.cache.last_meta
        return self.cache.last_meta

    def cancel(self) -> None:
        """Stop issuing record calls; in-flight calls finish, aggregation is skipped."""
        self._cancel.set()

    # --- derived views ---

    def meta_analysis(self, force: bool = False) -> MetaAnalysis:
        """Meta-analysis for the current collection and prompt. Raises SynthesisError."""
        fingerprint = collection_fingerprint(self._reports)
        prompt = self.config.analysis_prompt
        if not force:
            cached = self.cache.get_meta(fingerprint, prompt)
            if cached is not None:
                return cached
        meta = self.synthesizer.synthesize_meta(self._reports, prompt)
        self.cache.put_meta(fingerprint, prompt, meta)
        return meta

    def strategic_dossiers(self, force: bool = False) -> StrategicDossiers:
        """Dossiers for the current collection, cached until it changes. Raises SynthesisError."""
        fingerprint = collection_fingerprint(self._reports)
        if not force:
            cached = self.cache.get_dossiers(fingerprint)
            if cached is not None:
                return cached
        dossiers = self.synthesizer.synthesize_dossiers(self._reports)
        self.cache.put_dossiers(fingerprint, dossiers)
        return dossiers

    def column_summary(
        self,
        columns: Sequence[str],
        records: Optional[list[SheetRecord]] = None,
    ) -> ColumnSummary:
        """
        Summary over the named columns of every row. Uses the given records, else
        the last parsed records, else fetches the sheet (fetch/parse errors propagate).
        """
        if records is None:
            records = self._records
        if not records:
            config = self.config
            if not config.is_ready:
                raise NotConnected("No spreadsheet connected")
            records = self.source.fetch_records(config.source_id, config.sheet_name)
            self._records = records
        labels = list(records[0].data.keys()) if records else []
        return self.synthesizer.synthesize_columns_by_name(records, labels, columns)

    # --- sync session ---

    def sync(self) -> SyncOutcome:
        """
        Run one session. Raises NotConnected if no sheet is configured and
        SyncInProgress if another sync is running; everything else is in the outcome.
        """
        if not self._lock.acquire(blocking=False):
            raise SyncInProgress("A sync is already running")
        try:
            config = self.config
            if not config.is_ready:
                raise NotConnected("No spreadsheet connected")
            self._cancel.clear()
            run = self.store.start_run(config.source_id, config.sheet_name)
            outcome = SyncOutcome()
            try:
                self._run_session(config, outcome)
            except Exception as e:
                self._state = SyncState.FAILED
                self.store.finish_run(run.id, status=SyncStatus.FAILED.value, error_message=str(e))
                raise
            self.store.finish_run(
                run.id,
                status=outcome.status.value,
                records_total=outcome.records_total,
                attempted=outcome.attempted,
                succeeded=outcome.succeeded,
                failed=len(outcome.failures),
                error_message=outcome.error.user_message() if outcome.error else None,
            )
            logger.info("Sync %s: %s", outcome.status.value, outcome.message)
            return outcome
        finally:
            self._lock.release()

    def _fail(self, outcome: SyncOutcome, error: SheetIntelError) -> None:
        logger.warning("Sync failed in %s: %s", self._state.value, error.user_message())
        outcome.error = error
        outcome.status = SyncStatus.FAILED
        self._transition(outcome, SyncState.FAILED)

    def _stop_cancelled(self, outcome: SyncOutcome) -> None:
        outcome.status = SyncStatus.CANCELLED
        self._transition(outcome, SyncState.IDLE)

    def _run_session(self, config: SyncConfig, outcome: SyncOutcome) -> None:
        self._transition(outcome, SyncState.FETCHING)
        if self._cancel.is_set():
            return self._stop_cancelled(outcome)
        try:
            raw = self.source.fetch_raw(config.source_id, config.sheet_name)
        except TransportError as e:
            return self._fail(outcome, e)

        self._transition(outcome, SyncState.PARSING)
        try:
            records = self.source.to_records(self.source.parse(raw))
        except SheetParseError as e:
            return self._fail(outcome, e)
        self._records = records
        outcome.records_total = len(records)

        items, outcome.skipped_empty = select_for_analysis(records, self.aliases)
        self._transition(outcome, SyncState.ANALYZING)
        batch = self.orchestrator.analyze_all(items, self._cancel)
        outcome.attempted = batch.attempted
        outcome.succeeded = batch.succeeded
        outcome.not_attempted = batch.not_attempted
        outcome.failures = batch.failures
        if self._cancel.is_set():
            return self._stop_cancelled(outcome)

        if batch.results:
            self._reports = list(batch.results)
            self.store.save_reports(self._reports)

        self._transition(outcome, SyncState.AGGREGATING)
        if batch.results:
            try:
                outcome.meta = self.meta_analysis()
            except SynthesisError as e:
                outcome.synthesis_errors.append(e)
                outcome.meta = self.cache.last_meta

        self.store.save_config(
            self.config.model_copy(update={"last_sync_time": datetime.now(timezone.utc)})
        )
        if batch.succeeded == 0:
            outcome.status = SyncStatus.NO_RESULTS
        elif batch.failures:
            outcome.status = SyncStatus.PARTIAL
        else:
            outcome.status = SyncStatus.SUCCESS
        self._transition(outcome, SyncState.IDLE)
