"""SQLite-backed store for sync configuration, report collection and run history."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter

from sheet_intel.models.analysis import AnalysisResult
from sheet_intel.models.config import SyncConfig

CONFIG_KEY = "sync_config"
REPORTS_KEY = "reports"

_REPORTS_ADAPTER = TypeAdapter(list[AnalysisResult])


@dataclass
class RunRecord:
    """Record of one sync session."""

    id: int
    source_id: str
    sheet_name: str
    started_at: datetime
    finished_at: Optional[datetime]
    status: str  # running | success | partial | no_results | failed | cancelled
    records_total: int
    attempted: int
    succeeded: int
    failed: int
    error_message: Optional[str]


class SessionStore:
    """
    Key-value settings plus sync run history in one SQLite file.
    The report collection is stored as a single JSON blob.
    """

    def __init__(self, db_path: str | Path = "sheet_intel.db"):
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        with self._connection() as conn:
            conn.executescript(schema_path.read_text())

    def _get_value(self, key: str) -> Optional[str]:
        with self._connection() as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def _set_value(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, now),
            )
            conn.commit()

    def get_config(self) -> SyncConfig:
        """Stored sync config, or a disconnected default."""
        raw = self._get_value(CONFIG_KEY)
        return SyncConfig.model_validate_json(raw) if raw else SyncConfig()

    def save_config(self, config: SyncConfig) -> None:
        self._set_value(CONFIG_KEY, config.model_dump_json())

    def connect(self, source_id: str, sheet_name: str = "Sheet1") -> SyncConfig:
        """Point the config at a spreadsheet tab, keeping prompt and last sync time."""
        source_id = source_id.strip()
        config = self.get_config().model_copy(
            update={
                "source_id": source_id,
                "sheet_name": sheet_name.strip() or "Sheet1",
                "connected": bool(source_id),
            }
        )
        self.save_config(config)
        return config

    def get_reports(self) -> list[AnalysisResult]:
        raw = self._get_value(REPORTS_KEY)
        return _REPORTS_ADAPTER.validate_json(raw) if raw else []

    def save_reports(self, reports: list[AnalysisResult]) -> None:
        self._set_value(REPORTS_KEY, _REPORTS_ADAPTER.dump_json(reports).decode())

    def start_run(self, source_id: str, sheet_name: str) -> RunRecord:
        """Record start of a sync run. Returns RunRecord with id."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            cursor = conn.execute(
                "INSERT INTO sync_runs (source_id, sheet_name, started_at, status) VALUES (?, ?, ?, 'running')",
                (source_id, sheet_name, now),
            )
            conn.commit()
            run_id = cursor.lastrowid
        return RunRecord(
            id=run_id or 0,
            source_id=source_id,
            sheet_name=sheet_name,
            started_at=datetime.fromisoformat(now),
            finished_at=None,
            status="running",
            records_total=0,
            attempted=0,
            succeeded=0,
            failed=0,
            error_message=None,
        )

    def finish_run(
        self,
        run_id: int,
        *,
        status: str,
        records_total: int = 0,
        attempted: int = 0,
        succeeded: int = 0,
        failed: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        """Record completion of a sync run."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """
                UPDATE sync_runs SET finished_at = ?, status = ?, records_total = ?,
                    attempted = ?, succeeded = ?, failed = ?, error_message = ?
                WHERE id = ?
                """,
                (now, status, records_total, attempted, succeeded, failed, error_message, run_id),
            )
            conn.commit()

    def list_runs(self, limit: int = 20) -> list[RunRecord]:
        """Most recent runs first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM sync_runs ORDER BY started_at DESC, id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [self._row_to_run(r) for r in rows]

    def _row_to_run(self, row: sqlite3.Row) -> RunRecord:
        return RunRecord(
            id=row["id"],
            source_id=row["source_id"],
            sheet_name=row["sheet_name"],
            started_at=datetime.fromisoformat(row["started_at"]),
            finished_at=datetime.fromisoformat(row["finished_at"]) if row["finished_at"] else None,
            status=row["status"],
            records_total=row["records_total"],
            attempted=row["attempted"],
            succeeded=row["succeeded"],
            failed=row["failed"],
            error_message=row["error_message"],
        )
