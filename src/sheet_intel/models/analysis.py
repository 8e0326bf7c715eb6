"""Per-record analysis results and the derived report views."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ReportType(str, Enum):
    """Record category. The first member is the fallback for unknown values."""

    SALES_CALL = "Sales Call"
    CUSTOMER_FEEDBACK = "Customer Feedback"
    PROCESS_AUDIT = "Process Audit"

    @classmethod
    def default(cls) -> "ReportType":
        return next(iter(cls))


class _CamelModel(BaseModel):
    """Wire format is camelCase; Python attributes are snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class MetricSet(_CamelModel):
    """Numeric fields extracted per record. Percent fields are 0-100."""

    conversion_probability: float
    customer_sentiment: float
    churn_risk: float
    deal_size_estimate: Optional[float] = None
    resolution_time_minutes: Optional[float] = None

    @field_validator("conversion_probability", "customer_sentiment", "churn_risk")
    @classmethod
    def _percent_range(cls, v: float) -> float:
        return _clamp(v)

    @field_validator("deal_size_estimate", "resolution_time_minutes")
    @classmethod
    def _non_negative(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else max(0.0, v)


class AnalysisPayload(_CamelModel):
    """Shape the model must return for one record."""

    summary: str
    insights: list[str]
    metrics: MetricSet


class AnalysisResult(_CamelModel):
    """Structured output of analyzing one record. Immutable."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    category: ReportType = ReportType.SALES_CALL
    label: str = "Unknown"
    summary: str = ""
    insights: list[str] = Field(default_factory=list)
    metrics: MetricSet
    raw_text: str = ""


class FeatureCard(_CamelModel):
    """One recurring theme / requested feature with its impact."""

    title: str
    description: str
    impact_score: float

    @field_validator("impact_score")
    @classmethod
    def _impact_range(cls, v: float) -> float:
        return _clamp(v)


class MetaAnalysis(_CamelModel):
    """Feature cards plus executive narrative across all results. Every field is required."""

    top_features: list[FeatureCard]
    executive_narrative: str

    @classmethod
    def empty(cls) -> "MetaAnalysis":
        return cls(top_features=[], executive_narrative="No data.")


class StrategicDossiers(_CamelModel):
    """Why customers say yes/no, opportunities/threats, act-now items (target 6-8)."""

    yes_no: str
    opps_threats: str
    act_now: list[str]

    @classmethod
    def empty(cls) -> "StrategicDossiers":
        return cls(yes_no="", opps_threats="", act_now=[])


class ColumnSummary(_CamelModel):
    """Themes and summary over a user-chosen subset of columns."""

    key_themes: list[str]
    summary: str
    insights: list[str]

    @classmethod
    def empty(cls) -> "ColumnSummary":
        return cls(key_themes=[], summary="No data available.", insights=[])


class CollectionStats(_CamelModel):
    """Headline numbers over the report collection."""

    report_count: int
    avg_sentiment: float
    total_deal_value: float
    avg_churn_risk: float
    category_counts: dict[str, int]

    @classmethod
    def empty(cls) -> "CollectionStats":
        return cls(
            report_count=0,
            avg_sentiment=0.0,
            total_deal_value=0.0,
            avg_churn_risk=0.0,
            category_counts={},
        )
