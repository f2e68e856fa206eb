"""Task registry for ``docket worker --tasks agri_calendar_extraction.docket_tasks:tasks``."""

from agri_calendar_extraction.services.calendar_job import process_calendar_job
from agri_calendar_extraction.services.retention import purge_expired_uploads


async def retention_purge_task() -> dict[str, int]:
    """Remove uploads older than ``retention_days``."""
    return purge_expired_uploads().to_dict()


tasks = [process_calendar_job, retention_purge_task]
