"""Purge stored uploads once they are older than the retention window."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

from agri_calendar_extraction.config import settings
from agri_calendar_extraction.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PurgeResult:
    scanned: int = 0
    removed: int = 0
    kept: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "scanned": self.scanned,
            "removed": self.removed,
            "kept": self.kept,
            "errors": self.errors,
        }


def purge_expired_uploads(
    directories: Iterable[str | Path] | None = None,
    retention_days: int | None = None,
    now: datetime | None = None,
) -> PurgeResult:
    """Delete upload files last modified before the retention cutoff.

    Args:
        directories: Directories to scan recursively. Defaults to
            ``temp_upload_dir``.
        retention_days: Window in days. Defaults to ``retention_days``.
        now: Reference time for the cutoff.

    Returns:
        PurgeResult with per-file counts. A file that cannot be removed is
        counted in ``errors`` and the scan continues.
    """
    if retention_days is None:
        retention_days = settings.retention_days
    cutoff = (now or datetime.now(UTC)) - timedelta(days=retention_days)
    scan_dirs = [Path(d) for d in directories] if directories else [
        Path(settings.temp_upload_dir)
    ]

    result = PurgeResult()
    for directory in scan_dirs:
        if not directory.is_dir():
            continue
        for item in directory.rglob("*"):
            if not item.is_file():
                continue
            result.scanned += 1
            try:
                modified = datetime.fromtimestamp(item.stat().st_mtime, UTC)
                if modified >= cutoff:
                    result.kept += 1
                    continue
                item.unlink()
                result.removed += 1
            except OSError as e:
                result.errors += 1
                logger.warning(
                    "Failed to remove expired upload", path=str(item), error=str(e)
                )

    logger.info(
        "Upload purge complete",
        **result.to_dict(),
        retention_days=retention_days,
        directories=len(scan_dirs),
    )
    return result
