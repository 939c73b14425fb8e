"""
Custom exception classes for the customs import client.

Every error raised by the import pipeline inherits from AppError and
carries a stable code plus structured details for logging.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MISSING_COLUMN")
        message: Human-readable message
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)


class ValidationError(AppError):
    """Input validation failed. Always raised before any network call."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details=details
        )


class ExternalServiceError(AppError):
    """Remote classification service failure."""

    def __init__(
        self,
        service: str,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code or f"{service.upper()}_ERROR",
            message=message,
            details={"service": service, **(details or {})}
        )


# ===================
# WORKBOOK ERRORS
# ===================

class ExcelParseError(ValidationError):
    """Excel file could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="EXCEL_PARSE_ERROR",
            message=message,
            details=details
        )


class EmptySheetError(ValidationError):
    """Sheet has no header row or no data rows."""

    def __init__(self, sheet: str):
        super().__init__(
            code="EMPTY_SHEET",
            message="Provided file is empty or it doesn't have the headings row",
            details={"sheet": sheet}
        )


class OutputWriteError(AppError):
    """Output workbook could not be written."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(
            code="OUTPUT_WRITE_FAILED",
            message=f"Failed to write output file '{path}': {message}",
            details={"path": path}
        )


# ===================
# ROW MAPPER ERRORS
# ===================

class MissingColumnError(ValidationError):
    """Mandatory column not found in the header row."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(
            code="MISSING_COLUMN",
            message=f"Provided file has no '{column}' column",
            details={"column": column}
        )


class UnsupportedTerritoryError(ValidationError):
    """Customs territory outside the supported set."""

    def __init__(self, territory: str, supported: list[str]):
        self.territory = territory
        super().__init__(
            code="UNSUPPORTED_TERRITORY",
            message=f"Customs territory '{territory}' is not supported",
            details={"provided": territory, "valid": supported}
        )


class MalformedFieldError(ValidationError):
    """Cell value could not be parsed for the given field."""

    def __init__(self, item_id: str, field: str, value: str):
        self.item_id = item_id
        self.field = field
        super().__init__(
            code="MALFORMED_FIELD",
            message=f"Invalid {field} for item '{item_id}'",
            details={"item_id": item_id, "field": field, "value": value}
        )


class MissingValueError(ValidationError):
    """Mandatory cell is empty."""

    def __init__(self, row: int, field: str):
        self.row = row
        self.field = field
        super().__init__(
            code="MISSING_VALUE",
            message=f"Row {row} has an empty '{field}' value",
            details={"row": row, "field": field}
        )


class DuplicateItemError(ValidationError):
    """Item identifier appears more than once."""

    def __init__(self, item_id: str, rows: list[int]):
        self.item_id = item_id
        super().__init__(
            code="DUPLICATE_ITEM",
            message=f"Item id '{item_id}' appears more than once",
            details={"item_id": item_id, "rows": rows}
        )


# ===================
# IMPORT CLIENT ERRORS
# ===================

CUSTOMS_SERVICE = "customs_api"


class TransportError(ExternalServiceError):
    """Network-level failure talking to the service."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            service=CUSTOMS_SERVICE,
            code="TRANSPORT_ERROR",
            message=f"Network error during {operation}: {message}",
            details={"operation": operation}
        )


class UnexpectedStatusError(ExternalServiceError):
    """Service answered with an unexpected HTTP status."""

    def __init__(
        self,
        code: str,
        action: str,
        status_code: int,
        body: str
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(
            service=CUSTOMS_SERVICE,
            code=code,
            message=f"Unexpected status code while {action}: {status_code}\n{body}",
            details={"status_code": status_code, "body": body}
        )


class SubmissionFailedError(UnexpectedStatusError):
    """Import submission was not accepted (expected 201)."""

    def __init__(self, status_code: int, body: str):
        super().__init__(
            code="SUBMISSION_FAILED",
            action="importing items",
            status_code=status_code,
            body=body
        )


class StatusCheckFailedError(UnexpectedStatusError):
    """Status endpoint did not answer 200."""

    def __init__(self, status_code: int, body: str):
        super().__init__(
            code="STATUS_CHECK_FAILED",
            action="checking import status",
            status_code=status_code,
            body=body
        )


class FetchFailedError(UnexpectedStatusError):
    """Import document could not be fetched (expected 200)."""

    def __init__(self, status_code: int, body: str):
        super().__init__(
            code="FETCH_FAILED",
            action="getting an import",
            status_code=status_code,
            body=body
        )


class MalformedResponseError(ExternalServiceError):
    """Response body could not be decoded."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            service=CUSTOMS_SERVICE,
            code="MALFORMED_RESPONSE",
            message=f"Could not decode {operation} response: {message}",
            details={"operation": operation}
        )


class ProcessingFailedError(ExternalServiceError):
    """Service reported the import job as failed."""

    def __init__(self, location: str, last_status: Optional[dict] = None):
        self.location = location
        self.last_status = last_status
        super().__init__(
            service=CUSTOMS_SERVICE,
            code="PROCESSING_FAILED",
            message="Error processing import",
            details={"location": location, "last_status": last_status}
        )


class ProcessingTimeoutError(ExternalServiceError):
    """Import did not reach a terminal status within the tick budget."""

    def __init__(self, location: str, ticks: int, last_status: Optional[dict] = None):
        self.location = location
        self.ticks = ticks
        self.last_status = last_status
        super().__init__(
            service=CUSTOMS_SERVICE,
            code="PROCESSING_TIMEOUT",
            message=f"Import not processed after {ticks} status checks (last status: {last_status})",
            details={"location": location, "ticks": ticks, "last_status": last_status}
        )


# ===================
# RECONCILIATION ERRORS
# ===================

class ReconciliationError(AppError):
    """Response items disagree with the submitted rows."""
    pass


class UnmatchedResultError(ReconciliationError):
    """Returned item id has no row in the spreadsheet."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(
            code="UNMATCHED_RESULT",
            message=f"Error processing import response, row with item id '{item_id}' is not found",
            details={"item_id": item_id}
        )


class MissingResultError(ReconciliationError):
    """Submitted items with no result in the import response."""

    def __init__(self, item_ids: list[str]):
        self.item_ids = item_ids
        super().__init__(
            code="MISSING_RESULT",
            message=f"Import response has no result for {len(item_ids)} item(s): {', '.join(item_ids)}",
            details={"item_ids": item_ids}
        )
