"""Normalized spreadsheet row."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SheetRecord(BaseModel):
    """
    One spreadsheet row as a label -> value mapping.
    Keys follow column order; values are always strings (blank cells are "").
    """

    model_config = ConfigDict(frozen=True)

    row_index: int = Field(..., description="0-based position among data rows")
    data: dict[str, str] = Field(default_factory=dict)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.data.get(key, default)

    def values_for(self, labels: list[str]) -> list[str]:
        """Cell values in the given label order; unknown labels give ""."""
        return [self.data.get(label, "") for label in labels]
