"""Locate the activity column and the time-axis columns of a sheet."""

from __future__ import annotations

from agri_calendar_extraction.calendar_model import (
    ColumnMap,
    PeriodKind,
    TimeAxisColumn,
)
from agri_calendar_extraction.services import calendar_patterns as patterns
from agri_calendar_extraction.utils.logging import get_logger
from agri_calendar_extraction.workbook import Cell, Sheet

logger = get_logger(__name__)


class StructureDetector:
    """Find where activity names and calendar periods live in a sheet.

    Only the first ``scan_rows`` rows are examined, row by row and left to
    right. The first cell that names the activity column wins.

    Two header layouts are recognised:

    * A single row of periods. For each period (and each physical column)
      only the first match is kept, and the columns are sorted
      chronologically: months January to December, then weeks in ascending
      number.
    * A row of month headings over a row of week labels (``JAN`` spanning
      ``WK1``..``WK4``). The week columns form the time axis in sheet order
      and each carries the month heading at or left of it as its
      ``group_label``. When week numbers restart under each month the label
      is prefixed with the month (``"February Week 1"``).

    Detection never raises. A sheet without an activity column simply yields
    a ``ColumnMap`` whose ``activity_column_index`` is None.
    """

    def __init__(self, scan_rows: int = patterns.HEADER_SCAN_ROWS) -> None:
        self._scan_rows = scan_rows

    def detect(self, sheet: Sheet) -> ColumnMap:
        """Detect the column layout of a sheet.

        Args:
            sheet: Loaded worksheet.

        Returns:
            ColumnMap with the activity column (if any) and chronologically
            ordered time-axis columns.
        """
        header_rows = sheet.rows[: self._scan_rows]
        activity_column = self._find_activity_column(header_rows)

        time_axis = self._grouped_week_axis(header_rows, activity_column)
        grouped = time_axis is not None
        if time_axis is None:
            time_axis = self._flat_axis(header_rows, activity_column)
            time_axis.sort(key=lambda c: c.sort_key)

        logger.debug(
            "Detected sheet structure",
            sheet=sheet.name,
            activity_column=activity_column,
            time_axis_columns=len(time_axis),
            month_over_week=grouped,
        )
        return ColumnMap(
            activity_column_index=activity_column,
            time_axis_columns=tuple(time_axis),
        )

    @staticmethod
    def _find_activity_column(rows: list[list[Cell]]) -> int | None:
        for row in rows:
            for cell in row:
                text = cell.text.strip()
                if text and patterns.is_activity_header(text):
                    return cell.column
        return None

    def _flat_axis(
        self, rows: list[list[Cell]], activity_column: int | None
    ) -> list[TimeAxisColumn]:
        time_axis: list[TimeAxisColumn] = []
        seen_periods: set[tuple[PeriodKind, int]] = set()
        seen_columns: set[int] = set()

        for row in rows:
            for cell in row:
                if cell.column == activity_column:
                    continue
                column = self._time_axis_column(cell.column, cell.text.strip())
                if column is None:
                    continue
                key = (column.kind, column.chronological_order)
                if key in seen_periods or cell.column in seen_columns:
                    continue
                seen_periods.add(key)
                seen_columns.add(cell.column)
                time_axis.append(column)
        return time_axis

    @staticmethod
    def _grouped_week_axis(
        rows: list[list[Cell]], activity_column: int | None
    ) -> list[TimeAxisColumn] | None:
        """Week columns under a month heading row, or None for other layouts."""
        for month_index, month_row in enumerate(rows):
            months: list[tuple[int, str]] = []
            has_weeks = False
            for cell in month_row:
                text = cell.text.strip()
                if not text or cell.column == activity_column:
                    continue
                month = patterns.match_month(text)
                if month is not None:
                    months.append((cell.column, month[1]))
                elif patterns.match_week(text) is not None:
                    has_weeks = True
            if not months or has_weeks:
                continue

            for week_row in rows[month_index + 1 :]:
                weeks: list[tuple[int, int]] = []
                for cell in week_row:
                    if cell.column == activity_column:
                        continue
                    number = patterns.match_week(cell.text.strip())
                    if number is not None:
                        weeks.append((cell.column, number))
                if weeks:
                    return _group_weeks(months, weeks)
            return None
        return None

    @staticmethod
    def _time_axis_column(column_index: int, text: str) -> TimeAxisColumn | None:
        if not text:
            return None
        month = patterns.match_month(text)
        if month is not None:
            number, name = month
            return TimeAxisColumn(
                column_index=column_index,
                period_label=name,
                chronological_order=number,
                kind=PeriodKind.MONTH,
            )
        week = patterns.match_week(text)
        if week is not None:
            return TimeAxisColumn(
                column_index=column_index,
                period_label=f"Week {week}",
                chronological_order=week,
                kind=PeriodKind.WEEK,
            )
        return None


def _group_weeks(
    months: list[tuple[int, str]], weeks: list[tuple[int, int]]
) -> list[TimeAxisColumn]:
    numbers = [number for _, number in weeks]
    restarts = len(set(numbers)) < len(numbers)

    time_axis: list[TimeAxisColumn] = []
    seen_labels: set[str] = set()
    for column_index, number in sorted(weeks):
        group = None
        for month_column, month_name in months:
            if month_column <= column_index:
                group = month_name
        label = f"Week {number}"
        if restarts and group is not None:
            label = f"{group} {label}"
        if label in seen_labels:
            continue
        seen_labels.add(label)
        time_axis.append(
            TimeAxisColumn(
                column_index=column_index,
                period_label=label,
                chronological_order=len(time_axis) + 1,
                kind=PeriodKind.WEEK,
                group_label=group,
            )
        )
    return time_axis
