"""Decide whether a calendar is month-based (seasonal) or week-based (cycle)."""

from __future__ import annotations

from agri_calendar_extraction.calendar_model import CalendarType, ColumnMap
from agri_calendar_extraction.services import calendar_patterns as patterns
from agri_calendar_extraction.workbook import WorkbookHints

DEFAULT_AMBIGUITY_MARGIN = 0.2


def hint_calendar_type(hints: WorkbookHints | None) -> CalendarType | None:
    """Calendar type implied by the upload form, if any.

    A poultry type or a cycle commodity implies a cycle calendar, a seasonal
    commodity implies a seasonal one.
    """
    if hints is None:
        return None
    if hints.poultry_type and hints.poultry_type.strip():
        return CalendarType.CYCLE
    commodity = (hints.commodity or "").strip().lower()
    if not commodity:
        return None
    if commodity in patterns.CYCLE_COMMODITIES:
        return CalendarType.CYCLE
    if commodity in patterns.SEASONAL_COMMODITIES:
        return CalendarType.SEASONAL
    return None


def is_ambiguous(months: int, weeks: int, margin: float) -> bool:
    total = months + weeks
    if total == 0:
        return True
    return abs(months - weeks) / total <= margin


def classify(
    column_map: ColumnMap,
    hints: WorkbookHints | None = None,
    margin: float = DEFAULT_AMBIGUITY_MARGIN,
) -> CalendarType:
    """Classify a calendar from its time-axis labels.

    More month labels means seasonal, more week labels means cycle. An exact
    tie with any week label is a cycle. When the split is within ``margin``
    of even (or there are no labels), the upload hint decides if it names a
    known commodity; otherwise the label vote stands and an empty axis is
    seasonal.

    Args:
        column_map: Layout of the sheet (or union of sheets).
        hints: Upload metadata with commodity or poultry type.
        margin: Relative difference at or below which the split is ambiguous.

    Returns:
        The calendar type. The same inputs always give the same type.
    """
    months = column_map.month_count
    weeks = column_map.week_count

    if weeks > months:
        by_labels = CalendarType.CYCLE
    elif months > weeks:
        by_labels = CalendarType.SEASONAL
    elif weeks > 0:
        by_labels = CalendarType.CYCLE
    else:
        by_labels = CalendarType.SEASONAL

    if is_ambiguous(months, weeks, margin):
        hinted = hint_calendar_type(hints)
        if hinted is not None:
            return hinted
    return by_labels
