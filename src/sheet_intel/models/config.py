"""Persisted sync configuration."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SyncConfig(BaseModel):
    """Which spreadsheet to sync, plus the user-editable analysis prompt."""

    source_id: str = Field(default="", description="Spreadsheet id from the sheet URL")
    sheet_name: str = "Sheet1"
    last_sync_time: Optional[datetime] = None
    connected: bool = False
    analysis_prompt: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.connected and bool(self.source_id.strip())
