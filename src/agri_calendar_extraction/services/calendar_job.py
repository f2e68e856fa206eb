"""Background job that parses an uploaded calendar workbook.

The Docket worker calls ``process_calendar_job`` with the location of the
stored upload. The parse itself is synchronous and CPU-bound, so it runs in
a worker thread under a wall-clock timeout. A timeout is fatal: no partial
calendar is returned.
"""

import asyncio
import time
from contextlib import suppress
from pathlib import Path
from typing import Any

from docket import Progress

from agri_calendar_extraction.config import settings as app_settings
from agri_calendar_extraction.output.calendar_views import build_preview_grid
from agri_calendar_extraction.services.calendar_parser import (
    CalendarParser,
    ParseOptions,
)
from agri_calendar_extraction.utils.exceptions import (
    ErrorCode,
    FileError,
    ResourceLimitExceededError,
)
from agri_calendar_extraction.utils.logging import (
    LogContext,
    get_logger,
    set_job_id,
)
from agri_calendar_extraction.workbook import WorkbookHints

logger = get_logger(__name__)
_DEFAULT_PROGRESS = Progress()


async def _set_progress(progress: Progress | None, message: str) -> None:
    """Update Docket progress messages when available."""
    if progress is None:
        return
    # Progress dependency is only valid inside a Docket worker context.
    with suppress(AssertionError):
        await progress.set_message(message)


def hints_from_dict(data: dict[str, Any] | None) -> WorkbookHints:
    """Build ``WorkbookHints`` from the JSON-safe dict stored with a job."""
    if not data:
        return WorkbookHints()
    year = data.get("year")
    return WorkbookHints(
        region=data.get("region") or None,
        district=data.get("district") or None,
        commodity=data.get("commodity") or None,
        poultry_type=data.get("poultry_type") or None,
        year=int(year) if year not in (None, "") else None,
    )


async def run_parse(
    parser: CalendarParser,
    content: bytes,
    filename: str,
    hints: WorkbookHints,
    timeout_seconds: float,
) -> Any:
    """Parse off the event loop, bounded by ``timeout_seconds``.

    Raises:
        ResourceLimitExceededError: If the parse does not finish in time.
    """
    started = time.monotonic()
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(parser.parse, content, filename, None, hints),
            timeout=timeout_seconds,
        )
    except TimeoutError as e:
        raise ResourceLimitExceededError(
            "timeout",
            round(time.monotonic() - started, 2),
            timeout_seconds,
            filename=filename,
        ) from e


async def process_calendar_job(
    job_id: str,
    filename: str,
    file_path: str,
    hints: dict[str, Any] | None = None,
    progress: Progress | None = _DEFAULT_PROGRESS,
) -> dict[str, Any]:
    """Parse a stored upload into a calendar.

    Args:
        job_id: The job ID to process.
        filename: Original uploaded filename.
        file_path: Path to the stored upload.
        hints: Upload form metadata (region, district, commodity,
            poultry_type, year).
        progress: Optional Docket progress reporter.

    Returns:
        Dictionary with the ``calendar``, its ``preview`` grid and parse
        ``metadata``, stored by Docket as the job result.
    """
    set_job_id(job_id)
    started = time.monotonic()

    try:
        with LogContext(job_id=job_id, filename=filename):
            logger.info("Starting calendar parse", filename=filename)
            await _set_progress(progress, "Processing started")

            document_path = Path(file_path)
            if not document_path.exists():
                raise FileError(
                    f"Uploaded file not found: {document_path}",
                    error_code=ErrorCode.FILE_NOT_FOUND,
                    file_path=str(document_path),
                )
            content = document_path.read_bytes()

            await _set_progress(progress, "Reading workbook")
            parser = CalendarParser(ParseOptions.from_settings(app_settings))
            result = await run_parse(
                parser,
                content,
                filename,
                hints_from_dict(hints),
                app_settings.parse_timeout_seconds,
            )

            duration = time.monotonic() - started
            stats = result.extraction_stats
            await _set_progress(
                progress,
                f"Extracted {stats.activities_extracted} activities "
                f"from {stats.sheets_processed} sheets",
            )

            logger.log_parse_result(
                job_id=job_id,
                success=True,
                duration_seconds=duration,
                sheets_processed=stats.sheets_processed,
                activities_extracted=stats.activities_extracted,
                activities_excluded=stats.activities_excluded,
                calendar_type=result.calendar_type.value,
                diagnostics=len(result.per_sheet_diagnostics),
            )

            return {
                "calendar": result.to_dict(),
                "preview": build_preview_grid(result),
                "metadata": {
                    "processing_time_seconds": duration,
                    "source_format": result.source_format,
                    "sheets_processed": stats.sheets_processed,
                },
            }

    except Exception as e:
        logger.error(
            "Job failed",
            job_id=job_id,
            error=f"{type(e).__name__}: {e}",
            error_type=type(e).__name__,
            exc_info=True,
        )
        if progress is not None:
            with suppress(AssertionError):
                await progress.set_message("Job failed")
        raise
