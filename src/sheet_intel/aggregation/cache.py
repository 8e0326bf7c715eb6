"""In-memory cache of derived views, owned by a sync controller."""

import hashlib
from dataclasses import dataclass
from typing import Generic, Iterable, Optional, TypeVar

from sheet_intel.models.analysis import AnalysisResult, MetaAnalysis, StrategicDossiers

ViewT = TypeVar("ViewT")


def collection_fingerprint(results: Iterable[AnalysisResult]) -> str:
    """Order-insensitive hash of result ids; changes whenever the collection does."""
    ids = sorted(r.id for r in results)
    return hashlib.sha256("\n".join(ids).encode()).hexdigest()


@dataclass
class _Entry(Generic[ViewT]):
    key: tuple
    value: ViewT


class DerivedViewCache:
    """
    Last computed meta-analysis and dossiers with the inputs they were built from.
    A stale entry is still returned by last_* so callers can keep showing it
    while a new synthesis is pending or has failed.
    """

    def __init__(self) -> None:
        self._meta: Optional[_Entry[MetaAnalysis]] = None
        self._dossiers: Optional[_Entry[StrategicDossiers]] = None

    def get_meta(self, fingerprint: str, prompt: Optional[str]) -> Optional[MetaAnalysis]:
        """Cached meta-analysis if it was built from this collection and prompt."""
        if self._meta and self._meta.key == (fingerprint, prompt):
            return self._meta.value
        return None

    def put_meta(self, fingerprint: str, prompt: Optional[str], value: MetaAnalysis) -> None:
        self._meta = _Entry((fingerprint, prompt), value)

    def get_dossiers(self, fingerprint: str) -> Optional[StrategicDossiers]:
        if self._dossiers and self._dossiers.key == (fingerprint,):
            return self._dossiers.value
        return None

    def put_dossiers(self, fingerprint: str, value: StrategicDossiers) -> None:
        self._dossiers = _Entry((fingerprint,), value)

    @property
    def last_meta(self) -> Optional[MetaAnalysis]:
        return self._meta.value if self._meta else None

    @property
    def last_dossiers(self) -> Optional[StrategicDossiers]:
        return self._dossiers.value if self._dossiers else None

    def invalidate(self) -> None:
        self._meta = None
        self._dossiers = None
