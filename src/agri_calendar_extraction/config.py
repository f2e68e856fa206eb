"""Configuration management for agricultural calendar extraction.

Configuration is loaded with pydantic-settings from environment variables
prefixed with ACE_, or from a .env file in the project root.

Environment Variables:
    ACE_MAX_FILE_SIZE_MB: Maximum upload size in MB (default: 10)
    ACE_TEMP_UPLOAD_DIR: Directory for uploaded workbooks awaiting parsing
    ACE_RETENTION_DAYS: Days to keep uploaded workbooks (default: 7)
    ACE_PARSE_TIMEOUT_SECONDS: Wall-clock limit for one parse (default: 30)
    ACE_MAX_SHEETS: Maximum sheets per workbook (default: 50)
    ACE_MAX_CELLS: Maximum cells across all sheets (default: 500000)
    ACE_COLOR_ONLY_MARKERS: Treat filled but empty cells as markers (default: false)
    ACE_AMBIGUITY_MARGIN: Month/week split treated as ambiguous (default: 0.2)
    ACE_JOB_TTL_HOURS: Job result retention time in hours (default: 24)
    ACE_DOCKET_NAME: Shared Docket name (default: agri-calendar-extraction)
    ACE_DOCKET_URL: Redis/memory backend URL (default: redis://localhost:6379/0)
    ACE_DOCKET_RESULT_STORAGE_URL: Optional Redis URL for result storage
    ACE_DOCKET_EXECUTION_TTL_SECONDS: Optional TTL override for executions
    ACE_DOCKET_ENABLE_INTERNAL_INSTRUMENTATION: Enable Docket internal spans
    ACE_LOG_LEVEL: Logging level (default: INFO)
    ACE_DEBUG: Enable debug mode (default: false)
    ACE_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    ACE_SERVER_HOST: Server bind host (default: 0.0.0.0)
    ACE_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
from datetime import timedelta
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        ACE_LOG_LEVEL=DEBUG
        ACE_MAX_SHEETS=20
        ACE_COLOR_ONLY_MARKERS=true
    """

    model_config = SettingsConfigDict(
        env_prefix="ACE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # File Upload Settings
    # =========================================================================

    max_file_size_mb: int = 10
    """Maximum file upload size in megabytes."""

    temp_upload_dir: str = "/tmp/ace_uploads"
    """Directory for storing uploaded workbooks until they are parsed."""

    retention_days: int = 7
    """Days to keep uploaded workbooks before the retention purge removes them."""

    # =========================================================================
    # Parse Limits
    # =========================================================================

    parse_timeout_seconds: float = 30.0
    """Wall-clock limit for parsing a single workbook."""

    max_sheets: int = 50
    """Maximum number of sheets accepted in one workbook."""

    max_cells: int = 500_000
    """Maximum number of cells (rows x columns, summed over sheets)."""

    # =========================================================================
    # Extraction Behaviour
    # =========================================================================

    color_only_markers: bool = False
    """Count a filled cell without text as a time marker.

    Off by default: a row is only kept when at least one time-axis cell
    carries a textual marker.
    """

    ambiguity_margin: float = 0.2
    """Relative month/week difference at or below which a commodity hint may
    decide the calendar type."""

    # =========================================================================
    # Job Management Settings
    # =========================================================================

    job_ttl_hours: int = 24
    """Time-to-live for job results in hours."""

    docket_name: str = "agri-calendar-extraction"
    """Shared Docket name for coordinating workers."""

    docket_url: str = "redis://localhost:6379/0"
    """Redis or memory backend URL for Docket (e.g., redis:// or memory://)."""

    docket_result_storage_url: str | None = None
    """Optional Redis URL for result storage (defaults to docket_url)."""

    docket_execution_ttl_seconds: int | None = None
    """Override for Docket execution TTL in seconds (defaults to job_ttl_seconds)."""

    docket_enable_internal_instrumentation: bool = False
    """Enable OpenTelemetry spans for Docket's internal Redis polling."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging and error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"

    server_port: int = 8000

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("retention_days", "max_sheets", "max_cells", "job_ttl_hours")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be at least 1, got {v}")
        return v

    @field_validator("parse_timeout_seconds")
    @classmethod
    def validate_parse_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"parse_timeout_seconds must be positive, got {v}")
        return v

    @field_validator("ambiguity_margin")
    @classmethod
    def validate_ambiguity_margin(cls, v: float) -> float:
        """Validate the margin is a fraction between 0.0 and 1.0."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"ambiguity_margin must be between 0.0 and 1.0, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    @field_validator("docket_execution_ttl_seconds")
    @classmethod
    def validate_docket_ttl(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(
                f"docket_execution_ttl_seconds must be at least 1, got {v}"
            )
        return v

    @model_validator(mode="after")
    def validate_retention_outlives_jobs(self) -> "Settings":
        """Uploaded files must not be purged before their job record expires."""
        if self.retention_days * 24 < self.job_ttl_hours:
            raise ValueError(
                f"retention_days ({self.retention_days}) must cover "
                f"job_ttl_hours ({self.job_ttl_hours})"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def job_ttl_seconds(self) -> int:
        return self.job_ttl_hours * 3600

    @property
    def docket_execution_ttl(self) -> timedelta:
        """Get Docket execution TTL as a timedelta."""
        ttl_seconds = (
            self.docket_execution_ttl_seconds
            if self.docket_execution_ttl_seconds is not None
            else self.job_ttl_seconds
        )
        return timedelta(seconds=ttl_seconds)

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary with backend credentials masked.

        Returns:
            Dictionary representation safe for logging.
        """
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "temp_upload_dir": self.temp_upload_dir,
            "retention_days": self.retention_days,
            "parse_timeout_seconds": self.parse_timeout_seconds,
            "max_sheets": self.max_sheets,
            "max_cells": self.max_cells,
            "color_only_markers": self.color_only_markers,
            "ambiguity_margin": self.ambiguity_margin,
            "job_ttl_hours": self.job_ttl_hours,
            "docket_name": self.docket_name,
            "docket_url": _mask_url_password(self.docket_url),
            "docket_result_storage_url": (
                _mask_url_password(self.docket_result_storage_url)
                if self.docket_result_storage_url
                else None
            ),
            "docket_execution_ttl_seconds": self.docket_execution_ttl_seconds,
            "docket_enable_internal_instrumentation": (
                self.docket_enable_internal_instrumentation
            ),
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def _mask_url_password(url: str) -> str:
    parts = urlsplit(url)
    if not parts.password:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


def validate_settings_on_startup(s: Settings) -> None:
    """Log warnings for settings that are valid but risky in production.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    if s.color_only_markers:
        logger.warning(
            "Colour-only markers are enabled. Rows with a filled cell and no "
            "text marker will be extracted as activities."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"max_file_size_mb={s.max_file_size_mb}, "
        f"parse_timeout_seconds={s.parse_timeout_seconds}"
    )


settings = Settings()
