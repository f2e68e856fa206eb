"""Shared utilities.

- Exception hierarchy with error codes (exceptions.py)
- Structured logging helpers (logging.py)
"""

from agri_calendar_extraction.utils.exceptions import (
    ACEError,
    ErrorCode,
    FileError,
    FileTooLargeError,
    HTTPStatusMixin,
    JobError,
    ParseError,
    ResourceLimitExceededError,
    UnreadableWorkbookError,
    UnsupportedFormatError,
    ValidationError,
)
from agri_calendar_extraction.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "ACEError",
    "ErrorCode",
    "FileError",
    "FileTooLargeError",
    "HTTPStatusMixin",
    "JobError",
    "ParseError",
    "ResourceLimitExceededError",
    "UnreadableWorkbookError",
    "UnsupportedFormatError",
    "ValidationError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
