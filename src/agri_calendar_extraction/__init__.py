"""Agricultural Calendar Extraction - colour-coded farming calendars to timelines."""

from agri_calendar_extraction.api import app, create_app

__all__ = ["app", "create_app"]
__version__ = "0.1.0"


def main() -> None:
    """Run the FastAPI server using uvicorn."""
    import uvicorn

    from agri_calendar_extraction.config import settings

    uvicorn.run(
        "agri_calendar_extraction.api:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
