"""Generic table structure decoded from the Sheets export payload."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SheetColumn(BaseModel):
    """Column header as reported by the export endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    label: str = ""
    type: Optional[str] = None


class SheetCell(BaseModel):
    """One cell: value is the typed value, formatted the display string."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    value: Any = Field(default=None, alias="v")
    formatted: Optional[str] = Field(default=None, alias="f")


class SheetRow(BaseModel):
    """Row of cells; a cell is None when the sheet cell is blank."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    cells: list[Optional[SheetCell]] = Field(default_factory=list, alias="c")


class RawTable(BaseModel):
    """
    Columns plus rows, positional (wire keys: cols / rows / c / v / f).
    A row may carry fewer cells than there are columns.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    columns: list[SheetColumn] = Field(default_factory=list, alias="cols")
    rows: list[SheetRow] = Field(default_factory=list)
