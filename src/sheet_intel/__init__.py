"""Spreadsheet sync and LLM analysis pipeline."""

__version__ = "0.1.0"
