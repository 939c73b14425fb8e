"""
Custom exceptions module.

Error codes are stable and surface in CLI output and logs.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,
    ExternalServiceError,

    # Workbook
    ExcelParseError,
    EmptySheetError,
    OutputWriteError,

    # Row mapper
    MissingColumnError,
    UnsupportedTerritoryError,
    MalformedFieldError,
    MissingValueError,
    DuplicateItemError,

    # Import client
    TransportError,
    UnexpectedStatusError,
    SubmissionFailedError,
    StatusCheckFailedError,
    FetchFailedError,
    MalformedResponseError,
    ProcessingFailedError,
    ProcessingTimeoutError,

    # Reconciliation
    ReconciliationError,
    UnmatchedResultError,
    MissingResultError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",
    "ExternalServiceError",

    # Workbook
    "ExcelParseError",
    "EmptySheetError",
    "OutputWriteError",

    # Row mapper
    "MissingColumnError",
    "UnsupportedTerritoryError",
    "MalformedFieldError",
    "MissingValueError",
    "DuplicateItemError",

    # Import client
    "TransportError",
    "UnexpectedStatusError",
    "SubmissionFailedError",
    "StatusCheckFailedError",
    "FetchFailedError",
    "MalformedResponseError",
    "ProcessingFailedError",
    "ProcessingTimeoutError",

    # Reconciliation
    "ReconciliationError",
    "UnmatchedResultError",
    "MissingResultError",
]
