"""FastAPI application for agricultural calendar extraction."""

import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Any

import pydantic
from docket import Docket
from docket.execution import Execution
from fastapi import (
    FastAPI,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agri_calendar_extraction.config import settings, validate_settings_on_startup
from agri_calendar_extraction.docket_tasks import retention_purge_task
from agri_calendar_extraction.models import (
    CalendarPreviewResponse,
    CalendarResultResponse,
    ErrorDetail,
    HealthResponse,
    JobStatus,
    JobStatusResponse,
    ParseMetadata,
    UploadHints,
    UploadResponse,
)
from agri_calendar_extraction.services.calendar_job import process_calendar_job
from agri_calendar_extraction.services.docket_client import build_docket
from agri_calendar_extraction.services.docket_jobs import (
    DocketJobStore,
    JobStatusSnapshot,
    build_status_snapshot,
    load_execution,
)
from agri_calendar_extraction.services.format_detector import (
    SUPPORTED_EXTENSIONS,
    declared_extension,
)
from agri_calendar_extraction.utils.exceptions import (
    ACEError,
    ErrorCode,
    FileError,
    FileTooLargeError,
    JobNotCompleteError,
    UnsupportedFormatError,
    ValidationError,
)
from agri_calendar_extraction.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_job_id,
    set_request_id,
)

API_VERSION = "0.1.0"

configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)


async def _load_job(docket: Docket, job_id: str) -> tuple[JobStatusSnapshot, Execution]:
    """Fetch metadata and execution state for ``job_id``.

    Raises:
        JobNotFoundError: If the job is unknown.
        JobExpiredError: If the job outlived its TTL.
    """
    metadata = await DocketJobStore(docket).get(job_id)
    execution = await load_execution(docket, job_id)
    return build_status_snapshot(metadata, execution), execution


def _require_finished(snapshot: JobStatusSnapshot) -> None:
    if snapshot.status in (JobStatus.PENDING, JobStatus.PROCESSING):
        raise JobNotCompleteError(
            snapshot.job_id,
            status=snapshot.status.value,
            progress=snapshot.progress,
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        docket = build_docket()
        await docket.__aenter__()
        docket.register(process_calendar_job)
        docket.register(retention_purge_task)
        app.state.docket = docket
        try:
            yield
        finally:
            await docket.__aexit__(None, None, None)
            app.state.docket = None

    app = FastAPI(
        title="Agricultural Calendar Extraction API",
        description=(
            "Turns colour-coded farming calendar spreadsheets into structured "
            "activity timelines with their author colours."
        ),
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    validate_settings_on_startup(settings)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Assign a request ID, echo it in ``X-Request-ID`` and clear context."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    @app.exception_handler(ACEError)
    async def ace_exception_handler(request: Request, exc: ACEError) -> JSONResponse:
        """Render application errors as ``ErrorDetail`` with their error code."""
        request_id = getattr(request.state, "request_id", get_request_id())
        log = logger.warning if exc.http_status < 500 else logger.error
        log(
            f"Request failed: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail(
                detail=exc.message,
                error_code=exc.error_code.value,
                details=exc.details if exc.details else None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(f"HTTP Error: {exc.detail}", status_code=exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Log unexpected errors and return a generic 500."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail(
                detail=detail,
                error_code=ErrorCode.INTERNAL_ERROR.value,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> dict[str, Any]:
        logger.debug("Health check requested")
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": API_VERSION,
        }

    @app.post(
        "/calendars",
        response_model=UploadResponse,
        status_code=status.HTTP_202_ACCEPTED,
        tags=["Calendars"],
        responses={
            400: {"model": ErrorDetail, "description": "Missing or unsupported file"},
            413: {"model": ErrorDetail, "description": "File too large"},
        },
    )
    async def upload_calendar(
        request: Request,
        file: Annotated[
            UploadFile | None, File(description="Calendar spreadsheet")
        ] = None,
        region: Annotated[str | None, Form()] = None,
        district: Annotated[str | None, Form()] = None,
        commodity: Annotated[str | None, Form()] = None,
        poultry_type: Annotated[str | None, Form()] = None,
        year: Annotated[str | None, Form()] = None,
    ) -> dict[str, Any]:
        """Upload a calendar spreadsheet for extraction.

        The workbook is parsed in the background. Poll ``GET /jobs/{job_id}``
        and fetch the calendar from ``GET /jobs/{job_id}/result``.

        Raises:
            ValidationError: If no file is sent or a hint is out of range.
            UnsupportedFormatError: If the extension is not .xlsx, .xls or .csv.
            FileTooLargeError: If the file exceeds ``max_file_size_mb``.
        """
        if file is None or not file.filename:
            logger.warning("Upload request missing file")
            raise ValidationError("A spreadsheet file must be provided", field="file")

        extension = declared_extension(file.filename)
        if extension not in SUPPORTED_EXTENSIONS:
            logger.warning(
                "Unsupported upload extension",
                filename=file.filename,
                extension=extension,
            )
            raise UnsupportedFormatError(
                f"Unsupported file type {extension or '(none)'}; expected one of "
                f"{', '.join(sorted(SUPPORTED_EXTENSIONS))}",
                extension=extension,
            )

        try:
            hints = UploadHints.model_validate(
                {
                    "region": region,
                    "district": district,
                    "commodity": commodity,
                    "poultry_type": poultry_type,
                    "year": year or None,
                }
            )
        except pydantic.ValidationError as e:
            raise ValidationError(
                "Invalid calendar metadata",
                errors=[err["msg"] for err in e.errors()],
            ) from e

        file_content = await file.read()
        file_size = len(file_content)
        if file_size > settings.max_file_size_bytes:
            logger.warning(
                "File too large",
                file_size=file_size,
                max_size=settings.max_file_size_bytes,
            )
            raise FileTooLargeError(
                file_size=file_size,
                max_size=settings.max_file_size_bytes,
                file_path=file.filename,
            )

        job_id = str(uuid.uuid4())
        set_job_id(job_id)

        upload_dir = Path(settings.temp_upload_dir)
        stored_path = upload_dir / f"{job_id}{extension}"
        try:
            upload_dir.mkdir(parents=True, exist_ok=True)
            stored_path.write_bytes(file_content)
        except OSError as e:
            raise FileError(
                f"Failed to store upload: {e}",
                error_code=ErrorCode.FILE_WRITE_ERROR,
                file_path=str(stored_path),
            ) from e

        hint_data = hints.model_dump(exclude_none=True)
        docket = request.app.state.docket
        await DocketJobStore(docket).create(
            job_id=job_id,
            filename=file.filename,
            file_path=str(stored_path),
            hints=hint_data,
        )
        await docket.add(process_calendar_job, key=job_id)(
            job_id,
            file.filename,
            str(stored_path),
            hint_data,
        )

        logger.info(
            "Calendar uploaded",
            job_id=job_id,
            filename=file.filename,
            file_size=file_size,
        )
        return {
            "job_id": job_id,
            "filename": file.filename,
            "file_size": file_size,
            "status": JobStatus.PENDING,
            "message": "Calendar uploaded successfully. Processing will begin shortly.",
        }

    @app.get(
        "/jobs/{job_id}",
        response_model=JobStatusResponse,
        tags=["Jobs"],
        responses={
            404: {"model": ErrorDetail, "description": "Job not found"},
            410: {"model": ErrorDetail, "description": "Job expired"},
        },
    )
    async def get_job_status(request: Request, job_id: str) -> dict[str, Any]:
        snapshot, _ = await _load_job(request.app.state.docket, job_id)
        logger.debug("Job status retrieved", job_id=job_id, status=snapshot.status.value)
        return {
            "job_id": snapshot.job_id,
            "status": snapshot.status,
            "filename": snapshot.filename,
            "created_at": snapshot.created_at,
            "updated_at": snapshot.updated_at,
            "progress": snapshot.progress,
            "error_message": snapshot.error_message,
        }

    @app.get(
        "/jobs/{job_id}/result",
        response_model=CalendarResultResponse,
        tags=["Jobs"],
        responses={
            404: {"model": ErrorDetail, "description": "Job not found"},
            410: {"model": ErrorDetail, "description": "Job expired"},
            425: {"model": ErrorDetail, "description": "Job not yet complete"},
        },
    )
    async def get_job_result(request: Request, job_id: str) -> dict[str, Any]:
        """Return the extracted calendar of a finished job.

        A failed job returns 200 with ``status`` ``failed`` and the error
        message; no partial calendar is ever returned.
        """
        snapshot, execution = await _load_job(request.app.state.docket, job_id)
        _require_finished(snapshot)

        calendar = None
        metadata = None
        if snapshot.status == JobStatus.COMPLETED:
            result = await execution.get_result()
            if isinstance(result, dict):
                calendar = result.get("calendar")
                result_metadata = result.get("metadata")
                if isinstance(result_metadata, dict):
                    metadata = ParseMetadata.model_validate(result_metadata)

        logger.info(
            "Job result retrieved",
            job_id=job_id,
            status=snapshot.status.value,
            has_calendar=calendar is not None,
        )
        return {
            "job_id": snapshot.job_id,
            "status": snapshot.status,
            "calendar": calendar,
            "metadata": metadata,
            "error_message": snapshot.error_message,
        }

    @app.get(
        "/jobs/{job_id}/preview",
        response_model=CalendarPreviewResponse,
        tags=["Jobs"],
        responses={
            404: {"model": ErrorDetail, "description": "Job not found"},
            409: {"model": ErrorDetail, "description": "Job failed"},
            425: {"model": ErrorDetail, "description": "Job not yet complete"},
        },
    )
    async def get_job_preview(request: Request, job_id: str) -> dict[str, Any]:
        """Return the activity-by-period grid of a completed job."""
        snapshot, execution = await _load_job(request.app.state.docket, job_id)
        _require_finished(snapshot)
        if snapshot.status == JobStatus.FAILED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Job {job_id} failed: {snapshot.error_message or 'unknown error'}",
            )

        result = await execution.get_result()
        preview = result.get("preview") if isinstance(result, dict) else None
        return {"job_id": job_id, "preview": preview or {}}

    logger.info("FastAPI application created successfully")
    return app


app = create_app()
