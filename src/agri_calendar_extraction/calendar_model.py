"""Result types produced by the calendar extraction engine.

These are plain dataclasses so the engine stays free of I/O and framework
types. ``to_dict`` gives the JSON-safe shape consumed by the API, the
persistence layer and the export service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PeriodKind(str, Enum):
    MONTH = "month"
    WEEK = "week"


class CalendarType(str, Enum):
    """Seasonal calendars use fixed months; cycle calendars use relative weeks."""

    SEASONAL = "seasonal"
    CYCLE = "cycle"


class DiagnosticCode(str, Enum):
    NO_ACTIVITY_COLUMN = "no_activity_column"
    NO_TIME_AXIS = "no_time_axis"
    NO_ACTIVITIES = "no_activities"


@dataclass(frozen=True)
class TimeAxisColumn:
    """A sheet column that stands for one calendar period.

    Attributes:
        column_index: Zero-based physical column in the sheet.
        period_label: Display label, ``"January"`` or ``"Week 3"``.
        chronological_order: Sort key within its kind (month 1-12, week N).
        kind: Whether the column is a month or a week.
        group_label: Month heading above a week column, for sheets that
            place a row of months over a row of weeks.
    """

    column_index: int
    period_label: str
    chronological_order: int
    kind: PeriodKind
    group_label: str | None = None

    @property
    def sort_key(self) -> tuple[int, int]:
        return (0 if self.kind is PeriodKind.MONTH else 1, self.chronological_order)

    def to_dict(self) -> dict[str, Any]:
        return {
            "column_index": self.column_index,
            "period_label": self.period_label,
            "chronological_order": self.chronological_order,
            "kind": self.kind.value,
            "group_label": self.group_label,
        }


@dataclass(frozen=True)
class ColumnMap:
    """Where the activity names and the time periods live in a sheet.

    ``time_axis_columns`` is always in chronological order, regardless of the
    physical column order in the sheet.
    """

    activity_column_index: int | None = None
    time_axis_columns: tuple[TimeAxisColumn, ...] = ()

    @property
    def month_count(self) -> int:
        """Month columns plus distinct month headings grouping week columns."""
        months = sum(1 for c in self.time_axis_columns if c.kind is PeriodKind.MONTH)
        groups = {c.group_label for c in self.time_axis_columns if c.group_label}
        return months + len(groups)

    @property
    def week_count(self) -> int:
        """Week columns that are not grouped under a month heading."""
        return sum(
            1
            for c in self.time_axis_columns
            if c.kind is PeriodKind.WEEK and c.group_label is None
        )

    @property
    def period_labels(self) -> list[str]:
        return [c.period_label for c in self.time_axis_columns]


@dataclass
class Activity:
    """One farming activity with its time span and author colours."""

    id: str
    name: str
    start_period: str
    end_period: str
    per_period_color: dict[str, str | None]
    dominant_color: str | None
    source_sheet: str
    source_row: int

    @property
    def periods(self) -> list[str]:
        return list(self.per_period_color)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "start_period": self.start_period,
            "end_period": self.end_period,
            "per_period_color": dict(self.per_period_color),
            "dominant_color": self.dominant_color,
            "source_sheet": self.source_sheet,
            "source_row": self.source_row,
        }


@dataclass(frozen=True)
class SheetDiagnostic:
    """Non-fatal note about a sheet that could not be fully extracted."""

    sheet_name: str
    code: DiagnosticCode
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "sheet_name": self.sheet_name,
            "code": self.code.value,
            "message": self.message,
        }


@dataclass
class SheetResult:
    """Everything extracted from one sheet before aggregation."""

    sheet_name: str
    column_map: ColumnMap
    activities: list[Activity] = field(default_factory=list)
    rows_scanned: int = 0
    activities_excluded: int = 0
    marker_cells: int = 0
    colors_resolved: int = 0
    calendar_type: CalendarType | None = None
    diagnostics: list[SheetDiagnostic] = field(default_factory=list)

    @property
    def color_palette(self) -> list[str]:
        """Distinct colours used by this sheet's activities, first use first."""
        palette: dict[str, None] = {}
        for activity in self.activities:
            for color in activity.per_period_color.values():
                if color is not None:
                    palette.setdefault(color)
        return list(palette)


@dataclass
class ExtractionStats:
    sheets_processed: int = 0
    activities_extracted: int = 0
    activities_excluded: int = 0
    colors_resolved_ratio: float = 0.0
    marker_cells: int = 0
    colors_resolved: int = 0
    rows_scanned: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheets_processed": self.sheets_processed,
            "activities_extracted": self.activities_extracted,
            "activities_excluded": self.activities_excluded,
            "colors_resolved_ratio": self.colors_resolved_ratio,
            "marker_cells": self.marker_cells,
            "colors_resolved": self.colors_resolved,
            "rows_scanned": self.rows_scanned,
        }


@dataclass(frozen=True)
class SheetSummary:
    sheet_name: str
    calendar_type: CalendarType | None
    activities_extracted: int
    activities_excluded: int
    time_axis_labels: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheet_name": self.sheet_name,
            "calendar_type": self.calendar_type.value if self.calendar_type else None,
            "activities_extracted": self.activities_extracted,
            "activities_excluded": self.activities_excluded,
            "time_axis_labels": list(self.time_axis_labels),
        }


@dataclass
class CalendarResult:
    """The extracted calendar for a whole workbook.

    Attributes:
        calendar_type: Seasonal (months) or cycle (weeks).
        commodity: Commodity or poultry type, from the upload hint or inferred.
        activities: Activities of all sheets, in sheet then row order.
        color_palette: Distinct canonical colours used, first use first.
        extraction_stats: Workbook-level counters.
        per_sheet_diagnostics: Non-fatal notes about sheets.
        period_labels: Union of all time-axis labels in chronological order.
        sheets: One summary per processed sheet.
        title: Calendar title found in the header area, if any.
        season: Season named in the title, ``"main"`` when none is.
        year: Calendar year from the hint or the title.
        region: Region hint from the upload form.
        district: District hint from the upload form.
        breed_type: Poultry breed named in the title or file name.
        source_filename: Name of the uploaded file.
    """

    calendar_type: CalendarType
    commodity: str | None
    activities: list[Activity]
    color_palette: list[str]
    extraction_stats: ExtractionStats
    per_sheet_diagnostics: list[SheetDiagnostic] = field(default_factory=list)
    period_labels: list[str] = field(default_factory=list)
    sheets: list[SheetSummary] = field(default_factory=list)
    title: str | None = None
    season: str | None = None
    year: int | None = None
    region: str | None = None
    district: str | None = None
    breed_type: str | None = None
    source_filename: str | None = None
    source_format: str | None = None

    @property
    def has_diagnostics(self) -> bool:
        return bool(self.per_sheet_diagnostics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "calendar_type": self.calendar_type.value,
            "commodity": self.commodity,
            "activities": [a.to_dict() for a in self.activities],
            "color_palette": list(self.color_palette),
            "extraction_stats": self.extraction_stats.to_dict(),
            "per_sheet_diagnostics": [d.to_dict() for d in self.per_sheet_diagnostics],
            "period_labels": list(self.period_labels),
            "sheets": [s.to_dict() for s in self.sheets],
            "title": self.title,
            "season": self.season,
            "year": self.year,
            "region": self.region,
            "district": self.district,
            "breed_type": self.breed_type,
            "source_filename": self.source_filename,
            "source_format": self.source_format,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CalendarResult:
        """Rebuild a result from ``to_dict`` output, e.g. a stored job result."""
        stats = data.get("extraction_stats", {})
        return cls(
            calendar_type=CalendarType(data["calendar_type"]),
            commodity=data.get("commodity"),
            activities=[Activity(**a) for a in data.get("activities", [])],
            color_palette=list(data.get("color_palette", [])),
            extraction_stats=ExtractionStats(**stats),
            per_sheet_diagnostics=[
                SheetDiagnostic(
                    sheet_name=d["sheet_name"],
                    code=DiagnosticCode(d["code"]),
                    message=d["message"],
                )
                for d in data.get("per_sheet_diagnostics", [])
            ],
            period_labels=list(data.get("period_labels", [])),
            sheets=[
                SheetSummary(
                    sheet_name=s["sheet_name"],
                    calendar_type=(
                        CalendarType(s["calendar_type"]) if s.get("calendar_type") else None
                    ),
                    activities_extracted=s["activities_extracted"],
                    activities_excluded=s["activities_excluded"],
                    time_axis_labels=tuple(s.get("time_axis_labels", ())),
                )
                for s in data.get("sheets", [])
            ],
            title=data.get("title"),
            season=data.get("season"),
            year=data.get("year"),
            region=data.get("region"),
            district=data.get("district"),
            breed_type=data.get("breed_type"),
            source_filename=data.get("source_filename"),
            source_format=data.get("source_format"),
        )
