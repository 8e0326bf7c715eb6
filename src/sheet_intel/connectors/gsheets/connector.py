"""Google Sheets connector using the public gviz JSON export."""

import logging
from typing import Optional

import httpx

from sheet_intel.connectors.base import BaseSheetSource
from sheet_intel.errors import RequestTimeout, TransportError
from sheet_intel.models.record import SheetRecord
from sheet_intel.models.table import RawTable

from .constants import GVIZ_PARAMS, GVIZ_URL_TEMPLATE
from .parsers import map_rows, unwrap_response

logger = logging.getLogger(__name__)

# HTTP status -> likely cause shown to the user
_STATUS_HINTS = {
    400: "The export request was rejected; check the sheet/tab name.",
    401: "The sheet is private. Share it with 'Anyone with the link can view'.",
    403: "The sheet is private. Share it with 'Anyone with the link can view'.",
    404: "Spreadsheet not found; check the spreadsheet id.",
}


class GoogleSheetsConnector(BaseSheetSource):
    """
    Connector for Google Sheets.
    Fetches one tab through the gviz endpoint, which answers with JSON
    wrapped in a JavaScript callback.
    """

    source_type = "gsheets"

    DEFAULT_HEADERS = {
        "User-Agent": "sheet-intel/0.1 (spreadsheet analysis pipeline)",
        "Accept": "application/json, text/javascript, */*",
    }

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = 30.0):
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers=self.DEFAULT_HEADERS,
        )

    def export_url(self, source_id: str) -> str:
        return GVIZ_URL_TEMPLATE.format(source_id=source_id.strip())

    def fetch_raw(self, source_id: str, sheet_name: str) -> str:
        """GET the export body. Raises RequestTimeout or TransportError."""
        url = self.export_url(source_id)
        params = {**GVIZ_PARAMS, "sheet": sheet_name}
        logger.debug("Fetching sheet %r from %s", sheet_name, url)
        try:
            response = self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RequestTimeout(f"Timed out fetching spreadsheet {source_id}: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise TransportError(
                f"Spreadsheet export returned HTTP {status}",
                hint=_STATUS_HINTS.get(status),
                status_code=status,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"Could not reach spreadsheet export: {e}") from e
        return response.text

    def parse(self, raw: str) -> RawTable:
        return unwrap_response(raw)

    def to_records(self, table: RawTable) -> list[SheetRecord]:
        return map_rows(table)

    def close(self) -> None:
        self._client.close()
