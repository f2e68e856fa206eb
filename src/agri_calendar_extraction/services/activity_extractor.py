"""Derive activity records from the data rows of a sheet."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from agri_calendar_extraction.calendar_model import Activity, ColumnMap
from agri_calendar_extraction.services import calendar_patterns as patterns
from agri_calendar_extraction.services.color_resolver import ColorResolver
from agri_calendar_extraction.utils.logging import get_logger
from agri_calendar_extraction.workbook import (
    Cell,
    EmptyValue,
    NumberValue,
    Sheet,
    TextValue,
)

logger = get_logger(__name__)

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def sheet_slug(name: str) -> str:
    slug = _SLUG_SEPARATORS.sub("-", name.lower()).strip("-")
    return slug or "sheet"


@dataclass
class SheetExtraction:
    """Activities of one sheet plus the counters the aggregator sums.

    Attributes:
        activities: Extracted activities in row order.
        excluded: Rows that named an activity but were dropped, either for
            having no time marker or for being malformed.
        marker_cells: Time-axis cells recognised as markers.
        colors_resolved: Marker cells whose fill resolved to a colour.
        rows_scanned: Data rows examined.
    """

    activities: list[Activity] = field(default_factory=list)
    excluded: int = 0
    marker_cells: int = 0
    colors_resolved: int = 0
    rows_scanned: int = 0


@dataclass
class _RowOutcome:
    activity: Activity | None
    marker_cells: int
    colors_resolved: int


class ActivityExtractor:
    """Turn qualifying sheet rows into ``Activity`` records.

    A row is skipped silently when its activity cell is empty, a bare row
    number, or a repeated header. A row that names an activity but has no
    time marker is dropped and counted as excluded; no default time span is
    ever invented for it.

    Args:
        resolver: Colour resolver for marker cells.
        color_only_markers: Also treat an empty cell with a resolvable fill
            as a marker. Off by default.
        data_start_row: First zero-based row that may hold an activity.
    """

    def __init__(
        self,
        resolver: ColorResolver | None = None,
        color_only_markers: bool = False,
        data_start_row: int = patterns.DATA_START_ROW,
    ) -> None:
        self._resolver = resolver or ColorResolver()
        self._color_only_markers = color_only_markers
        self._data_start_row = data_start_row

    def extract(self, sheet: Sheet, column_map: ColumnMap) -> SheetExtraction:
        """Extract activities from a sheet.

        Args:
            sheet: Loaded worksheet.
            column_map: Layout found by the structure detector.

        Returns:
            SheetExtraction with activities and counters. Never raises for
            a single bad row.
        """
        result = SheetExtraction()
        activity_column = column_map.activity_column_index
        if activity_column is None or not column_map.time_axis_columns:
            return result

        slug = sheet_slug(sheet.name)
        for row_index in range(self._data_start_row, len(sheet.rows)):
            result.rows_scanned += 1
            try:
                outcome = self._extract_row(
                    sheet, row_index, activity_column, column_map, slug
                )
            except (TypeError, ValueError, IndexError, KeyError) as e:
                logger.warning(
                    "Excluding malformed row",
                    sheet=sheet.name,
                    row=row_index + 1,
                    error=str(e),
                )
                result.excluded += 1
                continue

            if outcome is None:
                continue
            result.marker_cells += outcome.marker_cells
            result.colors_resolved += outcome.colors_resolved
            if outcome.activity is None:
                result.excluded += 1
            else:
                result.activities.append(outcome.activity)

        logger.debug(
            "Extracted sheet activities",
            sheet=sheet.name,
            activities=len(result.activities),
            excluded=result.excluded,
        )
        return result

    def _extract_row(
        self,
        sheet: Sheet,
        row_index: int,
        activity_column: int,
        column_map: ColumnMap,
        slug: str,
    ) -> _RowOutcome | None:
        name_cell = sheet.cell(row_index, activity_column)
        if name_cell is None or self._is_skipped_name(name_cell):
            return None

        name = patterns.clean_activity_name(name_cell.text)
        if not name:
            return None

        per_period_color: dict[str, str | None] = {}
        marker_cells = 0
        colors_resolved = 0
        for column in column_map.time_axis_columns:
            cell = sheet.cell(row_index, column.column_index)
            if cell is None:
                continue
            color = self._resolver.resolve(cell.fill)
            if not self._is_marker(cell, color):
                continue
            marker_cells += 1
            if color is not None:
                colors_resolved += 1
            per_period_color[column.period_label] = color

        if not per_period_color:
            logger.debug(
                "Row has no time marker",
                sheet=sheet.name,
                row=row_index + 1,
                activity=name,
            )
            return _RowOutcome(None, marker_cells, colors_resolved)

        periods = list(per_period_color)
        activity = Activity(
            id=f"{slug}-{row_index + 1}",
            name=name,
            start_period=periods[0],
            end_period=periods[-1],
            per_period_color=per_period_color,
            dominant_color=next(
                (c for c in per_period_color.values() if c is not None), None
            ),
            source_sheet=sheet.name,
            source_row=row_index + 1,
        )
        return _RowOutcome(activity, marker_cells, colors_resolved)

    @staticmethod
    def _is_skipped_name(cell: Cell) -> bool:
        value = cell.value
        if isinstance(value, EmptyValue):
            return True
        if isinstance(value, NumberValue):
            return value.number.is_integer()
        text = value.text.strip()
        return (
            not text
            or patterns.is_bare_integer(text)
            or patterns.is_header_token(text)
        )

    def _is_marker(self, cell: Cell, color: str | None) -> bool:
        value = cell.value
        if isinstance(value, NumberValue):
            return True
        if isinstance(value, TextValue) and patterns.is_marker_text(value.text):
            return True
        return self._color_only_markers and color is not None
