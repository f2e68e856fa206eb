"""Tests for the upload retention purge."""

import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import patch

from agri_calendar_extraction.docket_tasks import retention_purge_task
from agri_calendar_extraction.services.retention import (
    PurgeResult,
    purge_expired_uploads,
)

NOW = datetime(2024, 6, 1, tzinfo=UTC)


def _touch(path: Path, age: timedelta) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"upload")
    mtime = (NOW - age).timestamp()
    os.utime(path, (mtime, mtime))
    return path


class TestPurgeExpiredUploads:
    def test_removes_only_expired_files(self, tmp_path: Path) -> None:
        old = _touch(tmp_path / "old.xlsx", timedelta(days=10))
        fresh = _touch(tmp_path / "fresh.csv", timedelta(days=1))
        nested = _touch(tmp_path / "nested" / "older.xlsx", timedelta(days=30))

        result = purge_expired_uploads([tmp_path], retention_days=7, now=NOW)

        assert result == PurgeResult(scanned=3, removed=2, kept=1, errors=0)
        assert not old.exists()
        assert not nested.exists()
        assert fresh.exists()

    def test_missing_directory_is_skipped(self, tmp_path: Path) -> None:
        result = purge_expired_uploads(
            [tmp_path / "does-not-exist"], retention_days=7, now=NOW
        )
        assert result.to_dict() == {"scanned": 0, "removed": 0, "kept": 0, "errors": 0}

    def test_unlink_failure_is_counted(self, tmp_path: Path) -> None:
        _touch(tmp_path / "old.xlsx", timedelta(days=10))

        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            result = purge_expired_uploads([tmp_path], retention_days=7, now=NOW)

        assert result.errors == 1
        assert result.removed == 0

    def test_defaults_from_settings(self, tmp_path: Path) -> None:
        _touch(tmp_path / "old.xlsx", timedelta(days=10))

        with (
            patch(
                "agri_calendar_extraction.services.retention.settings.temp_upload_dir",
                str(tmp_path),
            ),
            patch(
                "agri_calendar_extraction.services.retention.settings.retention_days",
                7,
            ),
        ):
            result = purge_expired_uploads(now=NOW)

        assert result.removed == 1


class TestRetentionPurgeTask:
    async def test_returns_counts(self, tmp_path: Path) -> None:
        (tmp_path / "upload.xlsx").write_bytes(b"upload")

        with patch(
            "agri_calendar_extraction.services.retention.settings.temp_upload_dir",
            str(tmp_path),
        ):
            result = await retention_purge_task()

        assert result == {"scanned": 1, "removed": 0, "kept": 1, "errors": 0}
