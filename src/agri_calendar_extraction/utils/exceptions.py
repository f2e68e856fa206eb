"""Exception hierarchy for agricultural calendar extraction.

Every error raised by the service carries an error code, an HTTP status for
the API layer and a dictionary of structured details for logging.

Exception Hierarchy:
    ACEError (base)
    ├── FileError
    │   ├── FileTooLargeError
    │   └── UnsupportedFormatError
    ├── JobError
    │   ├── JobNotFoundError
    │   ├── JobExpiredError
    │   └── JobNotCompleteError
    ├── ParseError
    │   ├── UnreadableWorkbookError
    │   └── ResourceLimitExceededError
    └── ValidationError

Only ``ParseError`` and its subclasses are fatal for a single workbook parse.
Problems with one sheet, one row or one cell colour are reported as data on
the ``CalendarResult`` instead of being raised.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes used across the service.

    - E1xxx: Upload/file errors
    - E2xxx: Input validation errors
    - E3xxx: Job management errors
    - E4xxx: Workbook parse errors
    - E9xxx: Internal/unexpected errors
    """

    # File errors (E1xxx)
    FILE_NOT_FOUND = "E1001"
    FILE_TOO_LARGE = "E1002"
    UNSUPPORTED_FORMAT = "E1003"
    FILE_READ_ERROR = "E1004"
    FILE_WRITE_ERROR = "E1005"

    # Validation errors (E2xxx)
    VALIDATION_FAILED = "E2001"

    # Job errors (E3xxx)
    JOB_NOT_FOUND = "E3001"
    JOB_EXPIRED = "E3002"
    JOB_PROCESSING_FAILED = "E3004"
    JOB_NOT_COMPLETE = "E3005"

    # Parse errors (E4xxx)
    PARSE_FAILED = "E4001"
    WORKBOOK_UNREADABLE = "E4002"
    RESOURCE_LIMIT_EXCEEDED = "E4003"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"
    UNEXPECTED_ERROR = "E9999"


class HTTPStatusMixin:
    """Mixin giving exceptions an HTTP status for API responses."""

    http_status: int = 500

    def get_http_status(self) -> int:
        """Get the HTTP status code for this exception.

        Returns:
            HTTP status code appropriate for this error.
        """
        return self.http_status


class ACEError(Exception, HTTPStatusMixin):
    """Base exception for all calendar extraction errors.

    Attributes:
        message: Human-readable error message.
        error_code: Code from ``ErrorCode``.
        details: Additional structured information about the error.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for API responses.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# File Errors (E1xxx)
# =============================================================================


class FileError(ACEError):
    """Base class for upload and file errors."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILE_READ_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path information.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Path to the problematic file.
            details: Additional details.
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


class FileTooLargeError(FileError):
    """Raised when an upload exceeds the configured size limit."""

    http_status: int = 413

    def __init__(
        self,
        file_size: int,
        max_size: int,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            file_size: Actual file size in bytes.
            max_size: Maximum allowed size in bytes.
            file_path: Optional file path.
            details: Additional details.
        """
        details = details or {}
        details["file_size_bytes"] = file_size
        details["max_size_bytes"] = max_size
        super().__init__(
            message=(
                f"File size ({file_size} bytes) exceeds maximum "
                f"allowed size ({max_size} bytes)"
            ),
            error_code=ErrorCode.FILE_TOO_LARGE,
            file_path=file_path,
            details=details,
        )
        self.file_size = file_size
        self.max_size = max_size


class UnsupportedFormatError(FileError):
    """Raised when an upload's declared extension is not a spreadsheet type."""

    def __init__(
        self,
        message: str,
        extension: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if extension is not None:
            details["extension"] = extension
        super().__init__(
            message=message,
            error_code=ErrorCode.UNSUPPORTED_FORMAT,
            details=details,
        )
        self.extension = extension


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================


class ValidationError(ACEError):
    """General validation error for request input."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with validation details.

        Args:
            message: Main error message.
            field: Field that failed validation.
            errors: List of validation errors.
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        if errors:
            details["validation_errors"] = errors
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_FAILED,
            details=details,
        )


# =============================================================================
# Job Errors (E3xxx)
# =============================================================================


class JobError(ACEError):
    """Base class for job management errors."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.JOB_PROCESSING_FAILED,
        job_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with job ID.

        Args:
            message: Error message.
            error_code: Error code.
            job_id: ID of the affected job.
            details: Additional details.
        """
        details = details or {}
        if job_id:
            details["job_id"] = job_id
        super().__init__(message, error_code, details)
        self.job_id = job_id


class JobNotFoundError(JobError):
    """Raised when a job is not found."""

    http_status: int = 404

    def __init__(
        self,
        job_id: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message or f"Job not found: {job_id}",
            error_code=ErrorCode.JOB_NOT_FOUND,
            job_id=job_id,
            details=details,
        )


class JobExpiredError(JobError):
    """Raised when a job's metadata outlived its execution record."""

    http_status: int = 410

    def __init__(
        self,
        job_id: str,
        ttl_hours: int | None = None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if ttl_hours:
            details["ttl_hours"] = ttl_hours
        super().__init__(
            message=message or f"Job has expired: {job_id}",
            error_code=ErrorCode.JOB_EXPIRED,
            job_id=job_id,
            details=details,
        )


class JobNotCompleteError(JobError):
    """Raised when results are requested for a job that is still running."""

    http_status: int = 425  # Too Early

    def __init__(
        self,
        job_id: str,
        status: str,
        progress: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with job status.

        Args:
            job_id: The job ID.
            status: Current job status.
            progress: Current progress description.
            details: Additional details.
        """
        details = details or {}
        details["status"] = status
        if progress:
            details["progress"] = progress
        super().__init__(
            message=f"Job {job_id} is not complete (status: {status})",
            error_code=ErrorCode.JOB_NOT_COMPLETE,
            job_id=job_id,
            details=details,
        )


# =============================================================================
# Parse Errors (E4xxx)
# =============================================================================


class ParseError(ACEError):
    """Base class for fatal workbook parse errors.

    A ``ParseError`` means no ``CalendarResult`` is produced for the upload.
    """

    http_status: int = 422

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.PARSE_FAILED,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the source filename.

        Args:
            message: Error message.
            error_code: Error code.
            filename: Name of the uploaded workbook.
            details: Additional details.
        """
        details = details or {}
        if filename:
            details["filename"] = filename
        super().__init__(message, error_code, details)
        self.filename = filename


class UnreadableWorkbookError(ParseError):
    """Raised when the uploaded container cannot be opened.

    Covers corrupt zip archives, legacy binary ``.xls`` files, encrypted
    workbooks and content that is not tabular at all.
    """

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if reason:
            details["reason"] = reason
        super().__init__(
            message=message,
            error_code=ErrorCode.WORKBOOK_UNREADABLE,
            filename=filename,
            details=details,
        )
        self.reason = reason


class ResourceLimitExceededError(ParseError):
    """Raised when a workbook exceeds a size or time ceiling."""

    http_status: int = 413

    def __init__(
        self,
        limit: str,
        actual: int | float,
        maximum: int | float,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the exceeded limit.

        Args:
            limit: Name of the limit (``sheets``, ``cells`` or ``timeout``).
            actual: Observed value.
            maximum: Configured ceiling.
            filename: Name of the uploaded workbook.
            details: Additional details.
        """
        details = details or {}
        details["limit"] = limit
        details["actual"] = actual
        details["maximum"] = maximum
        super().__init__(
            message=f"Workbook exceeds {limit} limit ({actual} > {maximum})",
            error_code=ErrorCode.RESOURCE_LIMIT_EXCEEDED,
            filename=filename,
            details=details,
        )
        self.limit = limit
        self.actual = actual
        self.maximum = maximum
