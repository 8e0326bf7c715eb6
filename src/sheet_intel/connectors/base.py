"""Abstract base class for spreadsheet sources."""

from abc import ABC, abstractmethod

from sheet_intel.models.record import SheetRecord
from sheet_intel.models.table import RawTable


class BaseSheetSource(ABC):
    """
    Standard interface for spreadsheet sources.
    Sources implement raw retrieval and decoding; record mapping is shared.
    """

    source_type: str = ""

    @abstractmethod
    def fetch_raw(self, source_id: str, sheet_name: str) -> str:
        """
        Retrieve the raw response body for one sheet/tab. No parsing.
        """
        pass

    @abstractmethod
    def parse(self, raw: str) -> RawTable:
        """
        Decode a raw response body into a RawTable.
        """
        pass

    @abstractmethod
    def to_records(self, table: RawTable) -> list[SheetRecord]:
        """
        Convert a decoded table into ordered records.
        """
        pass

    def fetch_table(self, source_id: str, sheet_name: str) -> RawTable:
        """Fetch and decode in one step."""
        return self.parse(self.fetch_raw(source_id, sheet_name))

    def fetch_records(self, source_id: str, sheet_name: str) -> list[SheetRecord]:
        """
        Fetch, decode and map to records.
        Default implementation chains fetch_raw -> parse -> to_records.
        """
        return self.to_records(self.fetch_table(source_id, sheet_name))
