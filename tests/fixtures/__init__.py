"""Builders for calendar workbooks used across tests.

Sheets are described as plain lists of rows. ``make_sheet`` builds the
in-memory ``Sheet`` directly, while ``build_xlsx`` and ``build_csv`` produce
upload bytes that go through the real loader.

Example usage:
    from tests.fixtures import build_xlsx, seasonal_rows

    content = build_xlsx(
        {"Maize": seasonal_rows(["Land Prep"], ["JAN", "FEB"])},
        fills={"Maize": {"C4": "FF0000"}},
    )
"""

import io
from collections.abc import Mapping, Sequence
from typing import Any

from openpyxl import Workbook as XlWorkbook
from openpyxl.styles import PatternFill
from openpyxl.styles.colors import Color

from agri_calendar_extraction.services.workbook_loader import convert_value
from agri_calendar_extraction.workbook import Cell, FillDescriptor, RgbColor, Sheet

DEFAULT_TITLE = "MAIZE PRODUCTION CALENDAR 2024"

RED = FillDescriptor(background=RgbColor("FF0000"))


def make_sheet(
    rows: Sequence[Sequence[Any]],
    name: str = "Sheet1",
    fills: Mapping[tuple[int, int], FillDescriptor] | None = None,
) -> Sheet:
    """Build an in-memory sheet.

    Args:
        rows: Cell values row by row; ``None`` and ``""`` are empty cells.
        name: Sheet name.
        fills: Fill per zero-based (row, column).

    Returns:
        A dense ``Sheet``; short rows are padded with empty cells.
    """
    fills = fills or {}
    width = max((len(r) for r in rows), default=0)
    grid = []
    for row_index, values in enumerate(rows):
        padded = list(values) + [None] * (width - len(values))
        grid.append(
            [
                Cell(
                    value=convert_value(value),
                    row=row_index,
                    column=column_index,
                    fill=fills.get((row_index, column_index), FillDescriptor()),
                )
                for column_index, value in enumerate(padded)
            ]
        )
    return Sheet(name=name, rows=grid, row_count=len(grid), column_count=width)


def seasonal_rows(
    activities: Sequence[Sequence[Any]],
    periods: Sequence[str],
    title: str | None = DEFAULT_TITLE,
) -> list[list[Any]]:
    """Rows of a typical calendar sheet.

    Row 0 holds the title, row 1 is blank, row 2 is the header
    (``S/N``, ``Activity``, periods...) and activities start on row 3.

    Args:
        activities: One sequence per activity: the name followed by the
            marker cell values for each period.
        periods: Header labels of the time axis, e.g. ``["JAN", "FEB"]``.
        title: Title text for row 0.
    """
    rows: list[list[Any]] = [[title], []]
    rows.append(["S/N", "Activity", *periods])
    for number, (name, *markers) in enumerate(activities, start=1):
        rows.append([number, name, *markers])
    return rows


def build_xlsx(
    sheets: Mapping[str, Sequence[Sequence[Any]]],
    fills: Mapping[str, Mapping[str, str | Color]] | None = None,
) -> bytes:
    """Write sheets to ``.xlsx`` bytes with solid fills.

    Args:
        sheets: Sheet name to rows, in workbook order.
        fills: Sheet name to {coordinate: colour}. A string is an RGB or
            ARGB hex value; an openpyxl ``Color`` allows indexed and theme
            colours.

    Returns:
        The workbook file content.
    """
    fills = fills or {}
    wb = XlWorkbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append([None if value == "" else value for value in row] or [None])
        for coordinate, color in fills.get(name, {}).items():
            ws[coordinate].fill = PatternFill(fill_type="solid", fgColor=color)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_csv(rows: Sequence[Sequence[Any]], delimiter: str = ",") -> bytes:
    lines = [delimiter.join("" if v is None else str(v) for v in row) for row in rows]
    return ("\n".join(lines) + "\n").encode("utf-8")
