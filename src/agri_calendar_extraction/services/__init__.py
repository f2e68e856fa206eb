"""Services for agricultural calendar extraction."""

from agri_calendar_extraction.services.calendar_parser import (
    CalendarParser,
    ParseOptions,
)
from agri_calendar_extraction.services.color_resolver import ColorResolver
from agri_calendar_extraction.services.format_detector import FormatDetector
from agri_calendar_extraction.services.workbook_loader import WorkbookLoader

__all__ = [
    "CalendarParser",
    "ColorResolver",
    "FormatDetector",
    "ParseOptions",
    "WorkbookLoader",
]
