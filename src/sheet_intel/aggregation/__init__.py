"""Whole-collection synthesis, local statistics and the derived-view cache."""

from .cache import DerivedViewCache, collection_fingerprint
from .stats import collection_stats
from .synthesis import Synthesizer, render_rows

__all__ = [
    "DerivedViewCache",
    "Synthesizer",
    "collection_fingerprint",
    "collection_stats",
    "render_rows",
]
