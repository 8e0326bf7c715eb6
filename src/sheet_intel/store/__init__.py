"""Local storage for sync configuration, reports and run history."""

from sheet_intel.store.sqlite_store import RunRecord, SessionStore

__all__ = ["RunRecord", "SessionStore"]
