"""Structured logging utilities for agricultural calendar extraction.

This module provides:
- Request and job ID tracking using contextvars
- ``key=value`` structured log messages
- Performance metrics for workbook parsing
- Progress tracking across the sheets of a workbook

Usage:
    from agri_calendar_extraction.utils.logging import get_logger, LogContext

    logger = get_logger(__name__)

    with LogContext(job_id="job-456", filename="maize.xlsx"):
        logger.info("Parsing workbook", sheets=3)
"""

import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
_job_id_var: ContextVar[str | None] = ContextVar("job_id", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id_var.get()


def set_request_id(request_id: str | None) -> None:
    """Set the request ID in context.

    Args:
        request_id: The request ID to set, or None to clear.
    """
    _request_id_var.set(request_id)


def get_job_id() -> str | None:
    """Get the current job ID from context."""
    return _job_id_var.get()


def set_job_id(job_id: str | None) -> None:
    """Set the job ID in context.

    Args:
        job_id: The job ID to set, or None to clear.
    """
    _job_id_var.set(job_id)


def get_extra_context() -> dict[str, Any]:
    """Get additional context values set through ``LogContext``."""
    ctx = _extra_context_var.get()
    return ctx if ctx is not None else {}


def set_extra_context(context: dict[str, Any]) -> None:
    _extra_context_var.set(context)


def clear_context() -> None:
    """Clear all context variables."""
    _request_id_var.set(None)
    _job_id_var.set(None)
    _extra_context_var.set(None)


@dataclass
class PerformanceMetrics:
    """Container for performance metrics of one operation.

    Attributes:
        operation: Name of the operation being measured.
        start_time: When the operation started.
        end_time: When the operation ended.
        duration_seconds: Duration in seconds.
        sheets_processed: Number of sheets visited.
        rows_scanned: Number of data rows examined.
        activities_extracted: Number of activities produced.
        custom_metrics: Additional custom metrics.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    sheets_processed: int = 0
    rows_scanned: int = 0
    activities_extracted: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    def finish(self) -> None:
        """Mark the operation as complete and calculate duration."""
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging, omitting zero counters."""
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        if self.sheets_processed > 0:
            result["sheets_processed"] = self.sheets_processed
        if self.rows_scanned > 0:
            result["rows_scanned"] = self.rows_scanned
        if self.activities_extracted > 0:
            result["activities_extracted"] = self.activities_extracted
        if self.custom_metrics:
            result["custom_metrics"] = self.custom_metrics
        return result


class StructuredLogFormatter(logging.Formatter):
    """Formatter that prefixes records with the active log context."""

    def format(self, record: logging.LogRecord) -> str:
        prefix_parts = []
        request_id = get_request_id()
        if request_id:
            prefix_parts.append(f"request_id={request_id}")
        job_id = get_job_id()
        if job_id:
            prefix_parts.append(f"job_id={job_id}")
        for key, value in get_extra_context().items():
            prefix_parts.append(f"{key}={value}")

        prefix = f"[{' '.join(prefix_parts)}] " if prefix_parts else ""

        original_msg = record.msg
        record.msg = f"{prefix}{original_msg}"
        result = super().format(record)
        record.msg = original_msg

        return result


class StructuredLogger:
    """Logger wrapper that renders keyword arguments as ``key=value`` pairs."""

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)
        self._name = name

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying Python logger."""
        return self._logger

    def _build_message(self, message: str, **kwargs: Any) -> str:
        if not kwargs:
            return message

        parts = [f"{k}={v}" for k, v in kwargs.items()]
        return f"{message} | {', '.join(parts)}"

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._build_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._build_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._build_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log an error message.

        Args:
            message: Log message.
            exc_info: Whether to include exception info.
            **kwargs: Additional structured data.
        """
        self._logger.error(self._build_message(message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        self._logger.exception(self._build_message(message, **kwargs))

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        """Log performance metrics.

        Args:
            metrics: Performance metrics to log.
        """
        self.info(f"Performance: {metrics.operation}", **metrics.to_dict())

    def log_progress(
        self,
        stage: str,
        current: int,
        total: int,
        details: str | None = None,
    ) -> None:
        """Log progress for multi-step operations.

        Args:
            stage: Current processing stage.
            current: Current progress count.
            total: Total items to process.
            details: Optional additional details.
        """
        percentage = (current / total * 100) if total > 0 else 0
        kwargs: dict[str, Any] = {
            "current": current,
            "total": total,
            "percentage": f"{percentage:.1f}%",
        }
        if details:
            kwargs["details"] = details
        self.info(f"Progress: {stage}", **kwargs)

    def log_parse_result(
        self,
        job_id: str,
        success: bool,
        duration_seconds: float,
        sheets_processed: int,
        activities_extracted: int,
        activities_excluded: int,
        calendar_type: str | None = None,
        diagnostics: int = 0,
    ) -> None:
        """Log completion of a calendar parse job.

        Args:
            job_id: Job identifier.
            success: Whether the workbook was parsed.
            duration_seconds: Total processing time.
            sheets_processed: Number of sheets visited.
            activities_extracted: Activities in the result.
            activities_excluded: Rows dropped for lack of time markers.
            calendar_type: Workbook calendar type, when known.
            diagnostics: Number of per-sheet diagnostics recorded.
        """
        kwargs: dict[str, Any] = {
            "job_id": job_id,
            "success": success,
            "duration_seconds": f"{duration_seconds:.2f}",
            "sheets_processed": sheets_processed,
            "activities_extracted": activities_extracted,
            "activities_excluded": activities_excluded,
        }
        if calendar_type is not None:
            kwargs["calendar_type"] = calendar_type
        if diagnostics:
            kwargs["diagnostics"] = diagnostics

        level = logging.INFO if success else logging.ERROR
        self._logger.log(level, self._build_message("Calendar parse completed", **kwargs))


class LogContext:
    """Context manager for adding temporary context to logs.

    Usage:
        with LogContext(job_id="123", sheet="Maize"):
            logger.info("Processing...")
    """

    def __init__(self, **kwargs: Any) -> None:
        self._new_context = kwargs
        self._old_context: dict[str, Any] = {}
        self._old_job_id: str | None = None
        self._old_request_id: str | None = None

    def __enter__(self) -> "LogContext":
        self._old_context = get_extra_context().copy()
        self._old_job_id = get_job_id()
        self._old_request_id = get_request_id()

        new_context = dict(self._new_context)
        job_id = new_context.pop("job_id", None)
        request_id = new_context.pop("request_id", None)

        if job_id is not None:
            set_job_id(job_id)
        if request_id is not None:
            set_request_id(request_id)

        merged = self._old_context.copy()
        merged.update(new_context)
        set_extra_context(merged)

        return self

    def __exit__(self, *args: Any) -> None:
        set_extra_context(self._old_context)
        set_job_id(self._old_job_id)
        set_request_id(self._old_request_id)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[PerformanceMetrics, None, None]:
    """Time a block and log its metrics on exit.

    Usage:
        with timed_operation(logger, "parse_workbook") as metrics:
            metrics.sheets_processed = 3

    Args:
        logger: Logger to use for output.
        operation: Name of the operation.

    Yields:
        PerformanceMetrics instance for tracking.
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Configure root logging for the application.

    Args:
        level: Log level (int or string like "INFO").
        format_string: Custom format string (uses default if None).
        use_structured_formatter: Whether to use the structured formatter.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter: logging.Formatter
    if use_structured_formatter:
        formatter = StructuredLogFormatter(format_string)
    else:
        formatter = logging.Formatter(format_string)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        StructuredLogger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("Sheet parsed", sheet="Maize", activities=12)
    """
    return StructuredLogger(name)


class ProgressTracker:
    """Track and log progress through a fixed number of steps.

    Usage:
        tracker = ProgressTracker(logger, "Parsing sheets", total=len(sheets))
        for sheet in sheets:
            parse(sheet)
            tracker.update(details=sheet.name)
        tracker.complete()
    """

    def __init__(
        self,
        logger: StructuredLogger,
        stage: str,
        total: int,
        log_interval: int = 1,
    ) -> None:
        """Initialize the progress tracker.

        Args:
            logger: Logger to use.
            stage: Description of the stage being tracked.
            total: Total number of items.
            log_interval: Log every N updates (1 = every update).
        """
        self._logger = logger
        self._stage = stage
        self._total = total
        self._current = 0
        self._log_interval = log_interval
        self._start_time = time.time()

    @property
    def current(self) -> int:
        return self._current

    def update(self, increment: int = 1, details: str | None = None) -> None:
        self._current += increment
        if self._current % self._log_interval == 0 or self._current == self._total:
            self._logger.log_progress(self._stage, self._current, self._total, details)

    def complete(self) -> float:
        """Mark progress as complete.

        Returns:
            Total duration in seconds.
        """
        duration = time.time() - self._start_time
        self._logger.info(
            f"Completed: {self._stage}",
            total_items=self._total,
            duration_seconds=f"{duration:.2f}",
        )
        return duration
