"""Open uploaded spreadsheet bytes as an in-memory ``Workbook``.

``.xlsx`` workbooks are read with openpyxl using stored values only
(``data_only=True``); formulas are never evaluated. Fills are kept as raw
colour references so colour resolution stays a separate step. CSV files are
decoded with chardet, split with pandas and become a single sheet without
fills.
"""

from __future__ import annotations

import csv
import io
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, time
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

import chardet
import pandas as pd
from openpyxl import load_workbook
from openpyxl.styles.colors import Color
from openpyxl.styles.fills import PatternFill
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from agri_calendar_extraction.models import SpreadsheetFormat
from agri_calendar_extraction.services.format_detector import (
    FormatDetector,
    declared_extension,
)
from agri_calendar_extraction.utils.exceptions import (
    ResourceLimitExceededError,
    UnreadableWorkbookError,
)
from agri_calendar_extraction.utils.logging import get_logger
from agri_calendar_extraction.workbook import (
    EMPTY,
    NO_FILL,
    ArgbColor,
    Cell,
    CellValue,
    ColorRef,
    FillDescriptor,
    IndexedColor,
    NumberValue,
    RgbColor,
    Sheet,
    TextValue,
    ThemeColor,
    Workbook,
    WorkbookHints,
)

logger = get_logger(__name__)

# openpyxl fills unset colour slots with these defaults.
AUTOMATIC_INDEXED = 64
TRANSPARENT_ARGB = "00000000"

DEFAULT_MAX_SHEETS = 50
DEFAULT_MAX_CELLS = 500_000

# Raised by zipfile and the XML parsers for a damaged package. SyntaxError
# is the base of both xml.etree.ElementTree.ParseError and lxml's
# XMLSyntaxError.
CORRUPT_CONTAINER_ERRORS: tuple[type[BaseException], ...] = (
    BadZipFile,
    InvalidFileException,
    KeyError,
    OSError,
    ValueError,
    EOFError,
    SyntaxError,
    zlib.error,
)


def convert_value(raw: Any) -> CellValue:
    """Map an openpyxl cell value onto the tagged cell value variant.

    Booleans, dates and times keep their literal text instead of being
    coerced to numbers.
    """
    if raw is None:
        return EMPTY
    if isinstance(raw, bool):
        return TextValue("TRUE" if raw else "FALSE")
    if isinstance(raw, int | float):
        return NumberValue(float(raw))
    if isinstance(raw, datetime | date | time):
        return TextValue(raw.isoformat())
    text = str(raw)
    return TextValue(text) if text.strip() else EMPTY


def convert_color(color: Color | None) -> ColorRef | None:
    """Map an openpyxl colour onto a raw colour reference.

    Automatic colours (indexed 64 and transparent ARGB) are not author
    choices and map to None.
    """
    if color is None:
        return None
    if color.type == "rgb":
        value = color.rgb
        if not isinstance(value, str):
            return None
        value = value.strip().upper()
        if value == TRANSPARENT_ARGB:
            return None
        if len(value) == 8:
            return ArgbColor(value)
        if len(value) == 6:
            return RgbColor(value)
        return None
    if color.type == "indexed":
        if color.indexed is None or color.indexed == AUTOMATIC_INDEXED:
            return None
        return IndexedColor(int(color.indexed))
    if color.type == "theme" and color.theme is not None:
        return ThemeColor(int(color.theme), float(color.tint or 0.0))
    return None


def convert_fill(fill: Any) -> FillDescriptor:
    if not isinstance(fill, PatternFill) or fill.patternType in (None, "none"):
        return NO_FILL
    descriptor = FillDescriptor(
        background=convert_color(fill.bgColor),
        foreground=convert_color(fill.fgColor),
    )
    return NO_FILL if descriptor.is_empty else descriptor


@contextmanager
def _corrupt_container_guard(filename: str) -> Iterator[None]:
    """Report a damaged ``.xlsx`` package as an unreadable workbook."""
    try:
        yield
    except CORRUPT_CONTAINER_ERRORS as e:
        raise UnreadableWorkbookError(
            f"Workbook could not be opened: {e}",
            reason="corrupt_container",
            filename=filename,
        ) from e


class WorkbookLoader:
    """Load spreadsheet bytes into a ``Workbook``.

    Args:
        max_sheets: Maximum number of sheets accepted.
        max_cells: Maximum cells (rows x columns, summed over sheets).
        detector: Format detector; a new one is created when omitted.
    """

    FALLBACK_ENCODINGS = ("utf-8", "cp1252", "latin-1")
    MIN_ENCODING_CONFIDENCE = 0.5

    def __init__(
        self,
        max_sheets: int = DEFAULT_MAX_SHEETS,
        max_cells: int = DEFAULT_MAX_CELLS,
        detector: FormatDetector | None = None,
    ) -> None:
        self._max_sheets = max_sheets
        self._max_cells = max_cells
        self._detector = detector or FormatDetector()

    def load(
        self,
        content: bytes,
        filename: str,
        extension: str | None = None,
        hints: WorkbookHints | None = None,
    ) -> Workbook:
        """Open an uploaded file.

        Args:
            content: Raw file bytes.
            filename: Original upload filename.
            extension: Declared extension; derived from ``filename`` if omitted.
            hints: Metadata submitted with the upload.

        Returns:
            Workbook with one ``Sheet`` per worksheet (one for CSV).

        Raises:
            UnreadableWorkbookError: If the container cannot be opened.
            ResourceLimitExceededError: If the sheet or cell ceiling is hit.
        """
        extension = extension or declared_extension(filename)
        try:
            format_info = self._detector.detect(content, extension)
        except UnreadableWorkbookError as e:
            e.details.setdefault("filename", filename)
            raise

        if format_info.format is SpreadsheetFormat.CSV:
            sheets = [self._load_csv(content, filename)]
        else:
            sheets = self._load_xlsx(content, filename)

        workbook = Workbook(
            sheets=sheets,
            source_filename=filename,
            hints=hints or WorkbookHints(),
            source_format=format_info.format.value,
        )
        logger.info(
            "Workbook loaded",
            filename=filename,
            format=format_info.format.value,
            sheets=len(sheets),
            cells=workbook.cell_count,
        )
        return workbook

    # ------------------------------------------------------------------ #
    # xlsx
    # ------------------------------------------------------------------ #

    def _load_xlsx(self, content: bytes, filename: str) -> list[Sheet]:
        # Sizes are measured on a streaming pass so an oversized sheet is
        # rejected before any cell object is built.
        self._check_xlsx_limits(content, filename)

        with _corrupt_container_guard(filename):
            wb = load_workbook(filename=io.BytesIO(content), data_only=True)
            try:
                return [self._read_worksheet(ws) for ws in wb.worksheets]
            finally:
                wb.close()

    def _check_xlsx_limits(self, content: bytes, filename: str) -> None:
        with _corrupt_container_guard(filename):
            wb = load_workbook(
                filename=io.BytesIO(content), read_only=True, data_only=True
            )
            try:
                worksheets = wb.worksheets
                if len(worksheets) > self._max_sheets:
                    raise ResourceLimitExceededError(
                        "sheets", len(worksheets), self._max_sheets, filename=filename
                    )
                total_cells = 0
                for ws in worksheets:
                    total_cells += self._measure_cells(
                        ws, self._max_cells - total_cells
                    )
                    if total_cells > self._max_cells:
                        raise ResourceLimitExceededError(
                            "cells", total_cells, self._max_cells, filename=filename
                        )
            finally:
                wb.close()

    @staticmethod
    def _measure_cells(ws: Any, budget: int) -> int:
        """Rows x widest row of a read-only sheet, stopping once over budget.

        The declared ``<dimension>`` is not trusted; the sheet XML is
        streamed instead.
        """
        ws.reset_dimensions()
        row_count = 0
        width = 0
        for row in ws.iter_rows(values_only=True):
            row_count += 1
            width = max(width, len(row))
            if row_count * width > budget:
                break
        return row_count * width

    @staticmethod
    def _read_worksheet(ws: Worksheet) -> Sheet:
        rows: list[list[Cell]] = []
        for row_index, row in enumerate(
            ws.iter_rows(min_row=1, max_row=ws.max_row, max_col=ws.max_column)
        ):
            rows.append(
                [
                    Cell(
                        value=convert_value(xl_cell.value),
                        row=row_index,
                        column=column_index,
                        fill=convert_fill(getattr(xl_cell, "fill", None)),
                    )
                    for column_index, xl_cell in enumerate(row)
                ]
            )
        return Sheet(
            name=ws.title,
            rows=rows,
            row_count=ws.max_row,
            column_count=ws.max_column,
        )

    # ------------------------------------------------------------------ #
    # csv
    # ------------------------------------------------------------------ #

    def _load_csv(self, content: bytes, filename: str) -> Sheet:
        text = self._decode(content, filename)
        delimiter = self._detect_delimiter(text)
        width = max(
            (len(r) for r in csv.reader(io.StringIO(text), delimiter=delimiter)),
            default=0,
        )
        if width == 0:
            raise UnreadableWorkbookError(
                "CSV file has no rows", reason="empty", filename=filename
            )
        if width > self._max_cells:
            raise ResourceLimitExceededError(
                "cells", width, self._max_cells, filename=filename
            )

        try:
            df = pd.read_csv(
                io.StringIO(text),
                delimiter=delimiter,
                header=None,
                names=list(range(width)),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise UnreadableWorkbookError(
                f"Failed to parse CSV: {e}", reason="malformed_csv", filename=filename
            ) from e

        df = df.fillna("")
        row_count, column_count = df.shape
        if row_count * column_count > self._max_cells:
            raise ResourceLimitExceededError(
                "cells", row_count * column_count, self._max_cells, filename=filename
            )

        rows = [
            [
                Cell(value=convert_value(value), row=row_index, column=column_index)
                for column_index, value in enumerate(values)
            ]
            for row_index, values in enumerate(df.itertuples(index=False, name=None))
        ]
        return Sheet(
            name=Path(filename).stem or "Sheet1",
            rows=rows,
            row_count=row_count,
            column_count=column_count,
        )

    def _decode(self, content: bytes, filename: str) -> str:
        detected = chardet.detect(content)
        encoding = detected.get("encoding")
        confidence = detected.get("confidence") or 0.0
        candidates: list[str] = []
        if encoding and confidence >= self.MIN_ENCODING_CONFIDENCE:
            candidates.append(encoding)
        candidates.extend(self.FALLBACK_ENCODINGS)

        for candidate in candidates:
            try:
                return content.decode(candidate).lstrip("\ufeff")
            except (UnicodeDecodeError, LookupError):
                continue
        raise UnreadableWorkbookError(
            "CSV file could not be decoded", reason="encoding", filename=filename
        )

    @staticmethod
    def _detect_delimiter(text: str) -> str:
        try:
            dialect = csv.Sniffer().sniff(text[:8192], delimiters=",;\t|")
            return dialect.delimiter
        except csv.Error:
            logger.debug("CSV delimiter detection failed, defaulting to comma")
            return ","
