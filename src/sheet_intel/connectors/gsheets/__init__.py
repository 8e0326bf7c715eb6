"""Google Sheets gviz connector."""

from .connector import GoogleSheetsConnector
from .parsers import column_labels, column_letter, extract_envelope, map_rows, unwrap_response

__all__ = [
    "GoogleSheetsConnector",
    "column_labels",
    "column_letter",
    "extract_envelope",
    "map_rows",
    "unwrap_response",
]
