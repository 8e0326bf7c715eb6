"""Error taxonomy for fetch, parse, analysis and synthesis failures."""

from typing import Optional


class SheetIntelError(Exception):
    """Base class for all pipeline errors."""

    hint: str = ""

    def __init__(self, message: str, *, hint: Optional[str] = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint

    def user_message(self) -> str:
        """Message plus actionable hint, for CLI / caller display."""
        msg = str(self)
        return f"{msg} ({self.hint})" if self.hint else msg


class ConfigurationError(SheetIntelError):
    """Settings or provider selection is invalid."""


class NotConnected(ConfigurationError):
    """Sync requested before a spreadsheet was connected."""

    hint = "Run `sheet-intel connect --sheet-id ...` first."


class SyncInProgress(SheetIntelError):
    """A sync is already running for this controller."""


# --- transport ---


class TransportError(SheetIntelError):
    """Network/HTTP failure reaching the spreadsheet or model endpoint."""

    hint = "Check network connectivity and the endpoint URL."

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, hint=hint)
        self.status_code = status_code


class RequestTimeout(TransportError):
    """External call exceeded its timeout."""

    hint = "The remote service did not answer in time; retry or raise the timeout."


# --- sheet parsing (session-fatal) ---


class SheetParseError(SheetIntelError):
    """Base for failures turning the export response into a table."""


class MalformedEnvelope(SheetParseError):
    """Callback wrapper around the embedded JSON could not be located."""

    hint = (
        "The response is not a Sheets export. Check the spreadsheet id and that "
        "the sheet is shared with 'Anyone with the link can view'."
    )


class MalformedPayload(SheetParseError):
    """Embedded text was found but is not decodable table JSON."""

    hint = (
        "The sheet returned broken JSON. This usually means a cell contains "
        "unescaped quotes, backslashes or control characters."
    )


class RemoteError(SheetParseError):
    """The export endpoint answered with a structured error instead of data."""

    SHEET_HINT = "Check the sheet/tab name; it must match the tab label exactly."
    OTHER_HINT = "Check the spreadsheet id and sharing permissions."

    def __init__(self, remote_message: str, *, sheet_not_found: bool = False):
        self.remote_message = remote_message
        self.sheet_not_found = sheet_not_found
        super().__init__(
            f"Spreadsheet returned an error: {remote_message}",
            hint=self.SHEET_HINT if sheet_not_found else self.OTHER_HINT,
        )


class EmptyResult(SheetParseError):
    """Table has a header but zero data rows."""

    hint = "The sheet has no data rows below the header."


# --- analysis (per record, recoverable) ---


class SchemaViolation(SheetIntelError):
    """
    Model output failed JSON parsing or schema validation.
    stage is "json_parse" or "schema".
    """

    def __init__(self, stage: str, errors: list[str], raw_response: str):
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        super().__init__(
            f"Model output failed validation at stage '{stage}': " + "; ".join(errors)
        )


class RecordAnalysisError(SheetIntelError):
    """Analysis of a single record failed; never fatal for the batch."""

    def __init__(self, record_label: str, cause: Exception):
        self.record_label = record_label
        self.cause = cause
        super().__init__(f"Analysis failed for {record_label!r}: {cause}")


# --- aggregation (recoverable) ---


class SynthesisError(SheetIntelError):
    """An aggregation call failed; previous derived view stays valid."""

    def __init__(self, view: str, cause: Exception):
        self.view = view
        self.cause = cause
        super().__init__(f"{view} synthesis failed: {cause}")
