"""Per-record analysis."""

from .orchestrator import AnalysisBatch, AnalysisOrchestrator, RecordFailure

__all__ = ["AnalysisBatch", "AnalysisOrchestrator", "RecordFailure"]
