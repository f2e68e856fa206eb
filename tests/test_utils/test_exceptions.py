"""Tests for the exception hierarchy."""

import pytest

from agri_calendar_extraction.utils.exceptions import (
    ACEError,
    ErrorCode,
    FileError,
    FileTooLargeError,
    JobError,
    JobExpiredError,
    JobNotCompleteError,
    JobNotFoundError,
    ParseError,
    ResourceLimitExceededError,
    UnreadableWorkbookError,
    UnsupportedFormatError,
    ValidationError,
)


class TestErrorCode:
    """Tests for ErrorCode enumeration."""

    def test_error_codes_are_unique(self) -> None:
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))

    def test_error_code_format(self) -> None:
        """Error codes should follow Exxxx format."""
        for code in ErrorCode:
            assert code.value.startswith("E")
            assert len(code.value) == 5
            assert code.value[1:].isdigit()

    @pytest.mark.parametrize(
        ("codes", "prefix"),
        [
            (
                [
                    ErrorCode.FILE_NOT_FOUND,
                    ErrorCode.FILE_TOO_LARGE,
                    ErrorCode.UNSUPPORTED_FORMAT,
                    ErrorCode.FILE_READ_ERROR,
                    ErrorCode.FILE_WRITE_ERROR,
                ],
                "E1",
            ),
            ([ErrorCode.VALIDATION_FAILED], "E2"),
            (
                [
                    ErrorCode.JOB_NOT_FOUND,
                    ErrorCode.JOB_EXPIRED,
                    ErrorCode.JOB_PROCESSING_FAILED,
                    ErrorCode.JOB_NOT_COMPLETE,
                ],
                "E3",
            ),
            (
                [
                    ErrorCode.PARSE_FAILED,
                    ErrorCode.WORKBOOK_UNREADABLE,
                    ErrorCode.RESOURCE_LIMIT_EXCEEDED,
                ],
                "E4",
            ),
        ],
    )
    def test_code_families(self, codes: list[ErrorCode], prefix: str) -> None:
        for code in codes:
            assert code.value.startswith(prefix)


class TestACEError:
    """Tests for base ACEError class."""

    def test_basic_initialization(self) -> None:
        error = ACEError("Test error message")
        assert str(error) == "[E9001] Test error message"
        assert error.message == "Test error message"
        assert error.error_code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}
        assert error.http_status == 500

    def test_to_dict(self) -> None:
        error = ACEError(
            "Test error",
            error_code=ErrorCode.FILE_NOT_FOUND,
            details={"path": "/test/file"},
        )
        result = error.to_dict()
        assert result["error_code"] == "E1001"
        assert result["message"] == "Test error"
        assert result["details"]["path"] == "/test/file"

    def test_to_dict_without_details(self) -> None:
        assert "details" not in ACEError("Test error").to_dict()

    def test_get_http_status(self) -> None:
        assert ACEError("Test").get_http_status() == 500


class TestFileErrors:
    """Tests for upload and file exceptions."""

    def test_file_error_records_path(self) -> None:
        error = FileError("Missing", ErrorCode.FILE_NOT_FOUND, file_path="/tmp/a.xlsx")
        assert error.file_path == "/tmp/a.xlsx"
        assert error.details["file_path"] == "/tmp/a.xlsx"
        assert error.http_status == 400

    def test_file_too_large_error(self) -> None:
        error = FileTooLargeError(file_size=20_000_000, max_size=10_000_000)
        assert error.error_code == ErrorCode.FILE_TOO_LARGE
        assert error.http_status == 413
        assert error.details["file_size_bytes"] == 20_000_000
        assert error.details["max_size_bytes"] == 10_000_000

    def test_unsupported_format_error(self) -> None:
        error = UnsupportedFormatError("Unsupported file type", extension=".pdf")
        assert error.extension == ".pdf"
        assert error.error_code == ErrorCode.UNSUPPORTED_FORMAT
        assert error.http_status == 400
        assert error.details["extension"] == ".pdf"


class TestValidationError:
    def test_field_and_errors_in_details(self) -> None:
        error = ValidationError("Bad input", field="year", errors=["too small"])
        assert error.error_code == ErrorCode.VALIDATION_FAILED
        assert error.http_status == 400
        assert error.details == {"field": "year", "validation_errors": ["too small"]}


class TestJobErrors:
    """Tests for job management exceptions."""

    def test_job_error_records_job_id(self) -> None:
        error = JobError("Failed", job_id="job-1")
        assert error.job_id == "job-1"
        assert error.details["job_id"] == "job-1"

    def test_job_not_found(self) -> None:
        error = JobNotFoundError("job-1")
        assert error.http_status == 404
        assert error.error_code == ErrorCode.JOB_NOT_FOUND
        assert "job-1" in error.message

    def test_job_expired(self) -> None:
        error = JobExpiredError("job-1", ttl_hours=24)
        assert error.http_status == 410
        assert error.details["ttl_hours"] == 24

    def test_job_not_complete(self) -> None:
        error = JobNotCompleteError("job-1", status="processing", progress="Reading")
        assert error.http_status == 425
        assert error.details["status"] == "processing"
        assert error.details["progress"] == "Reading"
        assert "processing" in error.message


class TestParseErrors:
    """Tests for fatal workbook parse exceptions."""

    def test_parse_error_defaults(self) -> None:
        error = ParseError("Could not parse", filename="cal.xlsx")
        assert error.error_code == ErrorCode.PARSE_FAILED
        assert error.http_status == 422
        assert error.details["filename"] == "cal.xlsx"

    def test_unreadable_workbook_reason(self) -> None:
        error = UnreadableWorkbookError("Corrupt", reason="corrupt_container")
        assert isinstance(error, ParseError)
        assert error.reason == "corrupt_container"
        assert error.error_code == ErrorCode.WORKBOOK_UNREADABLE
        assert error.details["reason"] == "corrupt_container"

    def test_resource_limit_exceeded(self) -> None:
        error = ResourceLimitExceededError("sheets", 60, 50, filename="big.xlsx")
        assert isinstance(error, ParseError)
        assert error.http_status == 413
        assert error.error_code == ErrorCode.RESOURCE_LIMIT_EXCEEDED
        assert error.details["limit"] == "sheets"
        assert error.details["actual"] == 60
        assert error.details["maximum"] == 50
        assert "60 > 50" in error.message
