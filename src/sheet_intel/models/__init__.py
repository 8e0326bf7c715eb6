"""Data models for sheet tables, records, analyses and derived views."""

from sheet_intel.models.analysis import (
    AnalysisPayload,
    AnalysisResult,
    CollectionStats,
    ColumnSummary,
    FeatureCard,
    MetaAnalysis,
    MetricSet,
    ReportType,
    StrategicDossiers,
)
from sheet_intel.models.config import SyncConfig
from sheet_intel.models.record import SheetRecord
from sheet_intel.models.table import RawTable, SheetCell, SheetColumn, SheetRow

__all__ = [
    "AnalysisPayload",
    "AnalysisResult",
    "CollectionStats",
    "ColumnSummary",
    "FeatureCard",
    "MetaAnalysis",
    "MetricSet",
    "RawTable",
    "ReportType",
    "SheetCell",
    "SheetColumn",
    "SheetRecord",
    "SheetRow",
    "StrategicDossiers",
    "SyncConfig",
]
