"""Pytest fixtures for sheet-intel tests."""

import json
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Union

import pytest

from sheet_intel.connectors.base import BaseSheetSource
from sheet_intel.connectors.gsheets.parsers import map_rows, unwrap_response
from sheet_intel.llm.backends import GenerationRequest, ModelBackend
from sheet_intel.models.record import SheetRecord
from sheet_intel.models.table import RawTable
from sheet_intel.store import SessionStore

ENVELOPE_PREFIX = "/*O_o*/\ngoogle.visualization.Query.setResponse("


def build_envelope(labels: list[str], rows: list[list[Any]], *, guard: bool = True) -> str:
    """Build a gviz export body with the given header labels and cell values."""
    payload = {
        "version": "0.6",
        "status": "ok",
        "table": {
            "cols": [
                {"id": chr(ord("A") + i), "label": label, "type": "string"}
                for i, label in enumerate(labels)
            ],
            "rows": [
                {"c": [None if v is None else {"v": v} for v in row]} for row in rows
            ],
        },
    }
    prefix = ENVELOPE_PREFIX if guard else ENVELOPE_PREFIX.split("\n", 1)[1]
    return f"{prefix}{json.dumps(payload)});"


ANALYSIS_OK = {
    "summary": "Prospect liked the demo.",
    "insights": ["Pricing questions", "Wants SSO"],
    "metrics": {
        "conversionProbability": 72,
        "customerSentiment": 81,
        "churnRisk": 12,
        "dealSizeEstimate": 25000,
    },
}

META_OK = {
    "topFeatures": [
        {"title": "SSO", "description": "Single sign-on requested", "impactScore": 88}
    ],
    "executiveNarrative": "Customers want enterprise auth.",
}

DOSSIERS_OK = {
    "yesNo": "Yes for speed, no for price.",
    "oppsThreats": "Upsell SSO; competitor discounts.",
    "actNow": ["Ship SSO", "Review pricing", "Publish case study", "Train AEs", "Fix onboarding", "Add audit log"],
}

COLUMNS_OK = {
    "keyThemes": ["pricing", "onboarding"],
    "summary": "Rows mostly discuss pricing.",
    "insights": ["Offer annual discount"],
}

Response = Union[str, dict, Exception, Callable[[GenerationRequest], Any]]


class FakeBackend(ModelBackend):
    """Call-counting backend; responses keyed by request schema_name."""

    provider = "fake"

    def __init__(self, responses: Optional[dict[str, Response]] = None):
        self.responses: dict[str, Response] = {
            "record_analysis": ANALYSIS_OK,
            "meta_analysis": META_OK,
            "strategic_dossiers": DOSSIERS_OK,
            "column_summary": COLUMNS_OK,
        }
        self.responses.update(responses or {})
        self.calls: list[GenerationRequest] = []
        self._lock = threading.Lock()

    def calls_for(self, schema_name: str) -> list[GenerationRequest]:
        return [c for c in self.calls if c.schema_name == schema_name]

    def generate(self, request: GenerationRequest) -> str:
        with self._lock:
            self.calls.append(request)
        response = self.responses[request.schema_name]
        if callable(response) and not isinstance(response, type):
            response = response(request)
        if isinstance(response, Exception):
            raise response
        return response if isinstance(response, str) else json.dumps(response)


class StaticSheetSource(BaseSheetSource):
    """Sheet source returning a fixed body (or raising a fixed error)."""

    source_type = "static"

    def __init__(self, body: str = "", error: Optional[Exception] = None):
        self.body = body
        self.error = error
        self.fetch_count = 0

    def fetch_raw(self, source_id: str, sheet_name: str) -> str:
        self.fetch_count += 1
        if self.error is not None:
            raise self.error
        return self.body

    def parse(self, raw: str) -> RawTable:
        return unwrap_response(raw)

    def to_records(self, table: RawTable) -> list[SheetRecord]:
        return map_rows(table)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def temp_db() -> Path:
    """Temporary database path for isolated tests."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    path.unlink(missing_ok=True)


@pytest.fixture
def store(temp_db: Path) -> SessionStore:
    return SessionStore(temp_db)


@pytest.fixture
def connected_store(store: SessionStore) -> SessionStore:
    store.connect("sheet-123", "Q4")
    return store


@pytest.fixture
def sample_envelope() -> str:
    """The single-row example from the gviz docs, without the guard comment."""
    return (
        'google.visualization.Query.setResponse({"table":{"cols":[{"label":"Transcript"},'
        '{"label":"Type"}],"rows":[{"c":[{"v":"Great demo"},{"v":"Sales Call"}]}]}});'
    )


@pytest.fixture
def record_factory() -> Callable[..., SheetRecord]:
    def _make(row_index: int = 0, **data: str) -> SheetRecord:
        return SheetRecord(row_index=row_index, data=dict(data))

    return _make
