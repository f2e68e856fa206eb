"""Workbook-to-calendar pipeline and multi-sheet aggregation.

``CalendarParser.parse`` is a pure function of the uploaded bytes and the
parse options: load the workbook, then for every sheet detect its layout,
extract activities and classify it, and finally merge the sheets into one
``CalendarResult``. A sheet that cannot be read becomes a diagnostic and the
remaining sheets are still processed.
"""

from __future__ import annotations

from dataclasses import dataclass

from agri_calendar_extraction.calendar_model import (
    Activity,
    CalendarResult,
    CalendarType,
    ColumnMap,
    DiagnosticCode,
    ExtractionStats,
    SheetDiagnostic,
    SheetResult,
    SheetSummary,
    TimeAxisColumn,
)
from agri_calendar_extraction.config import Settings
from agri_calendar_extraction.services import calendar_patterns as patterns
from agri_calendar_extraction.services.activity_extractor import ActivityExtractor
from agri_calendar_extraction.services.calendar_classifier import (
    DEFAULT_AMBIGUITY_MARGIN,
    classify,
)
from agri_calendar_extraction.services.color_resolver import ColorResolver
from agri_calendar_extraction.services.structure_detector import StructureDetector
from agri_calendar_extraction.services.workbook_loader import (
    DEFAULT_MAX_CELLS,
    DEFAULT_MAX_SHEETS,
    WorkbookLoader,
)
from agri_calendar_extraction.utils.logging import (
    LogContext,
    ProgressTracker,
    get_logger,
    timed_operation,
)
from agri_calendar_extraction.workbook import Sheet, Workbook, WorkbookHints

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParseOptions:
    """Knobs of a single parse.

    Attributes:
        color_only_markers: Count filled cells without text as markers.
        ambiguity_margin: Month/week split treated as ambiguous.
        max_sheets: Sheet ceiling for the workbook.
        max_cells: Cell ceiling for the workbook.
    """

    color_only_markers: bool = False
    ambiguity_margin: float = DEFAULT_AMBIGUITY_MARGIN
    max_sheets: int = DEFAULT_MAX_SHEETS
    max_cells: int = DEFAULT_MAX_CELLS

    @classmethod
    def from_settings(cls, s: Settings) -> ParseOptions:
        return cls(
            color_only_markers=s.color_only_markers,
            ambiguity_margin=s.ambiguity_margin,
            max_sheets=s.max_sheets,
            max_cells=s.max_cells,
        )


def process_sheet(
    sheet: Sheet,
    detector: StructureDetector,
    extractor: ActivityExtractor,
    hints: WorkbookHints | None = None,
    margin: float = DEFAULT_AMBIGUITY_MARGIN,
) -> SheetResult:
    """Run detection, extraction and classification on one sheet.

    Args:
        sheet: Loaded worksheet.
        detector: Structure detector.
        extractor: Activity extractor.
        hints: Upload metadata used by the classifier.
        margin: Ambiguity margin for the classifier.

    Returns:
        SheetResult. Problems are recorded as diagnostics, never raised.
    """
    column_map = detector.detect(sheet)
    result = SheetResult(sheet_name=sheet.name, column_map=column_map)

    if column_map.activity_column_index is None:
        result.diagnostics.append(
            SheetDiagnostic(
                sheet_name=sheet.name,
                code=DiagnosticCode.NO_ACTIVITY_COLUMN,
                message="No activity column found in the header rows",
            )
        )
        return result

    if not column_map.time_axis_columns:
        result.diagnostics.append(
            SheetDiagnostic(
                sheet_name=sheet.name,
                code=DiagnosticCode.NO_TIME_AXIS,
                message="No month or week columns found in the header rows",
            )
        )
        return result

    extraction = extractor.extract(sheet, column_map)
    result.activities = extraction.activities
    result.activities_excluded = extraction.excluded
    result.rows_scanned = extraction.rows_scanned
    result.marker_cells = extraction.marker_cells
    result.colors_resolved = extraction.colors_resolved
    result.calendar_type = classify(column_map, hints, margin)

    if not extraction.activities:
        result.diagnostics.append(
            SheetDiagnostic(
                sheet_name=sheet.name,
                code=DiagnosticCode.NO_ACTIVITIES,
                message=(
                    f"No activities extracted ({extraction.excluded} rows "
                    "without time markers)"
                ),
            )
        )
    return result


def find_title(sheets: list[Sheet]) -> str | None:
    """First long header-area text that reads like a calendar title."""
    for sheet in sheets:
        for row in sheet.rows[: patterns.TITLE_SCAN_ROWS]:
            for cell in row:
                text = cell.text.strip()
                if patterns.is_title_text(text):
                    return text
    return None


def _union_time_axis(sheet_results: list[SheetResult]) -> tuple[TimeAxisColumn, ...]:
    by_period: dict[tuple[tuple[int, int], str], TimeAxisColumn] = {}
    for result in sheet_results:
        if result.column_map.activity_column_index is None:
            continue
        for column in result.column_map.time_axis_columns:
            by_period.setdefault((column.sort_key, column.period_label), column)
    return tuple(by_period[key] for key in sorted(by_period))


def aggregate(
    workbook: Workbook,
    sheet_results: list[SheetResult],
    margin: float = DEFAULT_AMBIGUITY_MARGIN,
) -> CalendarResult:
    """Merge per-sheet results into one workbook result.

    Activities are concatenated in sheet order, palettes are unioned and the
    counters are summed. The workbook calendar type is classified from the
    union of all sheets' time-axis columns.

    Args:
        workbook: The loaded workbook (for filename, hints and title).
        sheet_results: One result per processed sheet.
        margin: Ambiguity margin for the classifier.

    Returns:
        The workbook CalendarResult.
    """
    hints = workbook.hints
    activities: list[Activity] = []
    palette: dict[str, None] = {}
    diagnostics: list[SheetDiagnostic] = []
    stats = ExtractionStats(sheets_processed=len(sheet_results))

    for result in sheet_results:
        activities.extend(result.activities)
        for color in result.color_palette:
            palette.setdefault(color)
        diagnostics.extend(result.diagnostics)
        stats.activities_excluded += result.activities_excluded
        stats.rows_scanned += result.rows_scanned
        stats.marker_cells += result.marker_cells
        stats.colors_resolved += result.colors_resolved

    stats.activities_extracted = len(activities)
    if stats.marker_cells:
        stats.colors_resolved_ratio = round(stats.colors_resolved / stats.marker_cells, 4)

    time_axis = _union_time_axis(sheet_results)
    calendar_type: CalendarType = classify(
        ColumnMap(time_axis_columns=time_axis), hints, margin
    )

    title = find_title(workbook.sheets)
    context_text = " ".join(t for t in (title, workbook.source_filename) if t)
    commodity = (
        hints.commodity
        or hints.poultry_type
        or patterns.infer_commodity(context_text)
    )

    return CalendarResult(
        calendar_type=calendar_type,
        commodity=commodity,
        activities=activities,
        color_palette=list(palette),
        extraction_stats=stats,
        per_sheet_diagnostics=diagnostics,
        period_labels=[c.period_label for c in time_axis],
        sheets=[
            SheetSummary(
                sheet_name=r.sheet_name,
                calendar_type=r.calendar_type,
                activities_extracted=len(r.activities),
                activities_excluded=r.activities_excluded,
                time_axis_labels=tuple(r.column_map.period_labels),
            )
            for r in sheet_results
        ],
        title=title,
        season=patterns.extract_season(title),
        year=hints.year or patterns.extract_year(title) or patterns.extract_year(
            workbook.source_filename
        ),
        region=hints.region,
        district=hints.district,
        breed_type=patterns.extract_breed_type(context_text),
        source_filename=workbook.source_filename,
        source_format=workbook.source_format,
    )


class CalendarParser:
    """Parse uploaded spreadsheets into calendar results.

    One parser may be shared across threads; it keeps no per-parse state.

    Args:
        options: Parse options; defaults apply when omitted.
        resolver: Colour resolver, e.g. with a custom strategy order.
    """

    def __init__(
        self,
        options: ParseOptions | None = None,
        resolver: ColorResolver | None = None,
    ) -> None:
        self._options = options or ParseOptions()
        self._loader = WorkbookLoader(
            max_sheets=self._options.max_sheets,
            max_cells=self._options.max_cells,
        )
        self._detector = StructureDetector()
        self._extractor = ActivityExtractor(
            resolver=resolver or ColorResolver(),
            color_only_markers=self._options.color_only_markers,
        )

    @property
    def options(self) -> ParseOptions:
        return self._options

    def parse(
        self,
        content: bytes,
        filename: str,
        extension: str | None = None,
        hints: WorkbookHints | None = None,
    ) -> CalendarResult:
        """Parse an uploaded file.

        Args:
            content: Raw file bytes.
            filename: Original upload filename.
            extension: Declared extension; derived from ``filename`` if omitted.
            hints: Metadata submitted with the upload.

        Returns:
            CalendarResult for the whole workbook.

        Raises:
            UnreadableWorkbookError: If the container cannot be opened.
            ResourceLimitExceededError: If the workbook is too large.
        """
        with timed_operation(logger, "parse_workbook") as metrics:
            workbook = self._loader.load(content, filename, extension, hints)
            result = self.parse_workbook(workbook)
            metrics.sheets_processed = result.extraction_stats.sheets_processed
            metrics.rows_scanned = result.extraction_stats.rows_scanned
            metrics.activities_extracted = result.extraction_stats.activities_extracted
        return result

    def parse_workbook(self, workbook: Workbook) -> CalendarResult:
        """Run the sheet pipeline on an already loaded workbook."""
        tracker = ProgressTracker(logger, "Parsing sheets", total=len(workbook.sheets))
        sheet_results: list[SheetResult] = []
        for sheet in workbook.sheets:
            with LogContext(sheet=sheet.name):
                sheet_results.append(
                    process_sheet(
                        sheet,
                        self._detector,
                        self._extractor,
                        workbook.hints,
                        self._options.ambiguity_margin,
                    )
                )
            tracker.update(details=sheet.name)
        tracker.complete()

        return aggregate(workbook, sheet_results, self._options.ambiguity_margin)
