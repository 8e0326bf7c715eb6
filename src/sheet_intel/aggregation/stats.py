"""Collection KPIs computed locally from stored results (no model call)."""

from collections import Counter
from typing import Sequence

from sheet_intel.models.analysis import AnalysisResult, CollectionStats


def collection_stats(results: Sequence[AnalysisResult]) -> CollectionStats:
    """
    Average sentiment and churn risk (one decimal), total estimated deal value
    and report count per category. Empty input gives the zero sentinel.
    """
    if not results:
        return CollectionStats.empty()
    n = len(results)
    counts = Counter(r.category.value for r in results)
    return CollectionStats(
        report_count=n,
        avg_sentiment=round(sum(r.metrics.customer_sentiment for r in results) / n, 1),
        total_deal_value=sum(r.metrics.deal_size_estimate or 0.0 for r in results),
        avg_churn_risk=round(sum(r.metrics.churn_risk for r in results) / n, 1),
        category_counts=dict(counts),
    )
