"""Build the Docket instance shared by the API and the worker CLI."""

from __future__ import annotations

from docket import Docket, _result_store

from agri_calendar_extraction.config import Settings, settings


def build_docket(s: Settings | None = None) -> Docket:
    """Build a Docket from settings.

    Args:
        s: Settings to read; the process-wide settings when omitted.

    Returns:
        An unopened Docket. Callers enter it as an async context manager.
    """
    s = s or settings
    result_storage = None
    if s.docket_result_storage_url:
        # Results live in a separate Redis-compatible store when configured.
        result_storage = _result_store.RedisStore(  # type: ignore[attr-defined]
            url=s.docket_result_storage_url
        )
    return Docket(
        name=s.docket_name,
        url=s.docket_url,
        execution_ttl=s.docket_execution_ttl,
        result_storage=result_storage,
        enable_internal_instrumentation=s.docket_enable_internal_instrumentation,
    )
