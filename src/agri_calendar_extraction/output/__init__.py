"""Views of extracted calendars for persistence and preview rendering."""

from agri_calendar_extraction.output.calendar_views import (
    build_preview_grid,
    to_persistence_rows,
)

__all__ = ["build_preview_grid", "to_persistence_rows"]
