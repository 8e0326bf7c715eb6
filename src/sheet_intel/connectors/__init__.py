"""Spreadsheet source connectors."""

from sheet_intel.connectors.base import BaseSheetSource
from sheet_intel.connectors.gsheets import GoogleSheetsConnector

__all__ = ["BaseSheetSource", "GoogleSheetsConnector"]
