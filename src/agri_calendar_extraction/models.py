"""Pydantic models for API requests and responses."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from agri_calendar_extraction.utils.exceptions import ErrorCode


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str


class JobStatus(str, Enum):
    """Status of a calendar parse job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class SpreadsheetFormat(str, Enum):
    XLSX = "xlsx"
    CSV = "csv"


class FormatInfo(BaseModel):
    """Result of spreadsheet container detection."""

    format: SpreadsheetFormat = Field(..., description="Loader to use for the upload")
    mime_type: str = Field(..., description="Canonical MIME type of the format")
    declared_extension: str | None = Field(
        default=None, description="Extension of the uploaded filename"
    )
    detected_from_content: bool = Field(
        default=False,
        description="Whether the format was identified from file content",
    )
    extension_mismatch: bool = Field(
        default=False,
        description="Whether the declared extension disagrees with the content",
    )


class UploadHints(BaseModel):
    """Metadata submitted with an upload by the calendar form."""

    region: str | None = Field(default=None, description="Region code or name")
    district: str | None = Field(default=None, description="District code or name")
    commodity: str | None = Field(default=None, description="Crop commodity")
    poultry_type: str | None = Field(
        default=None, description="Poultry type for production-cycle calendars"
    )
    year: int | None = Field(
        default=None, ge=1900, le=2200, description="Calendar year"
    )


class UploadResponse(BaseModel):
    """Response model for calendar upload endpoint."""

    job_id: str = Field(..., description="Unique identifier for the parse job")
    filename: str = Field(..., description="Original filename of uploaded workbook")
    file_size: int = Field(..., description="Size of uploaded file in bytes")
    status: JobStatus = Field(
        default=JobStatus.PENDING, description="Initial job status"
    )
    message: str = Field(..., description="Status message")


class JobStatusResponse(BaseModel):
    """Response model for job status endpoint."""

    job_id: str = Field(..., description="Unique identifier for the parse job")
    status: JobStatus = Field(..., description="Current job status")
    filename: str = Field(..., description="Original filename of uploaded workbook")
    created_at: datetime = Field(..., description="When the job was created")
    updated_at: datetime = Field(..., description="When the job was last updated")
    progress: str | None = Field(
        default=None, description="Current progress description"
    )
    error_message: str | None = Field(
        default=None, description="Error message if job failed"
    )


class ParseMetadata(BaseModel):
    """Metadata about a finished parse."""

    processing_time_seconds: float = Field(
        ..., description="Total processing time in seconds"
    )
    source_format: SpreadsheetFormat = Field(..., description="Detected format")
    sheets_processed: int = Field(..., description="Number of sheets visited")


class CalendarResultResponse(BaseModel):
    """Response model for job result endpoint."""

    job_id: str = Field(..., description="Unique identifier for the parse job")
    status: JobStatus = Field(..., description="Job status")
    calendar: dict[str, Any] | None = Field(
        default=None, description="Extracted calendar (activities, palette, stats)"
    )
    metadata: ParseMetadata | None = Field(
        default=None, description="Parse process metadata"
    )
    error_message: str | None = Field(
        default=None, description="Error message if job failed"
    )


class CalendarPreviewResponse(BaseModel):
    """Response model for the preview grid endpoint."""

    job_id: str = Field(..., description="Unique identifier for the parse job")
    preview: dict[str, Any] = Field(..., description="Grid of activities by period")


class ErrorDetail(BaseModel):
    """Error detail model for API error responses."""

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E1001')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )

    @classmethod
    def from_error_code(
        cls,
        error_code: ErrorCode,
        detail: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> "ErrorDetail":
        """Create an ErrorDetail from an ErrorCode enum value.

        Args:
            error_code: The error code enum.
            detail: Human-readable error message.
            details: Optional additional details.
            request_id: Optional request ID.

        Returns:
            ErrorDetail instance.
        """
        return cls(
            detail=detail,
            error_code=error_code.value,
            details=details,
            request_id=request_id,
        )
