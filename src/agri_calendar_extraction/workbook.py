"""Dataclasses representing a loaded spreadsheet workbook.

Cell values are an explicit tagged variant (``EmptyValue``, ``TextValue`` or
``NumberValue``) and fills keep the raw colour reference found in the file.
Colours are resolved later by ``services.color_resolver``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from openpyxl.utils import get_column_letter


@dataclass(frozen=True)
class EmptyValue:
    """A cell with no stored value."""


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class NumberValue:
    number: float


CellValue = EmptyValue | TextValue | NumberValue

EMPTY = EmptyValue()


def cell_text(value: CellValue) -> str:
    """Render a cell value as the text a reader sees in the sheet.

    Integral numbers render without a decimal part, so a stored ``3.0`` reads
    as ``"3"``.
    """
    if isinstance(value, TextValue):
        return value.text
    if isinstance(value, NumberValue):
        if value.number.is_integer():
            return str(int(value.number))
        return repr(value.number)
    return ""


@dataclass(frozen=True)
class RgbColor:
    """Six hex digit colour, ``"FF0000"``."""

    hex: str


@dataclass(frozen=True)
class ArgbColor:
    """Eight hex digit colour with a leading alpha byte, ``"FFBF9000"``."""

    hex: str


@dataclass(frozen=True)
class IndexedColor:
    """Reference into the legacy indexed palette."""

    index: int


@dataclass(frozen=True)
class ThemeColor:
    """Reference into the document theme, lightened or darkened by ``tint``."""

    index: int
    tint: float = 0.0


ColorRef = RgbColor | ArgbColor | IndexedColor | ThemeColor


@dataclass(frozen=True)
class FillDescriptor:
    """Raw fill of a cell: background slot and foreground/pattern slot."""

    background: ColorRef | None = None
    foreground: ColorRef | None = None

    @property
    def is_empty(self) -> bool:
        return self.background is None and self.foreground is None


NO_FILL = FillDescriptor()


@dataclass(frozen=True)
class Cell:
    """A single sheet cell. ``row`` and ``column`` are zero-based."""

    value: CellValue
    row: int
    column: int
    fill: FillDescriptor = NO_FILL

    @property
    def coordinate(self) -> str:
        return f"{get_column_letter(self.column + 1)}{self.row + 1}"

    @property
    def text(self) -> str:
        return cell_text(self.value)


@dataclass
class Sheet:
    """A worksheet as a dense grid of cells."""

    name: str
    rows: list[list[Cell]]
    row_count: int
    column_count: int

    def cell(self, row: int, column: int) -> Cell | None:
        """Return the cell at (row, column), or None outside the grid."""
        if row < 0 or column < 0 or row >= len(self.rows):
            return None
        cells = self.rows[row]
        if column >= len(cells):
            return None
        return cells[column]


@dataclass(frozen=True)
class WorkbookHints:
    """Metadata supplied by the upload form alongside the file."""

    region: str | None = None
    district: str | None = None
    commodity: str | None = None
    poultry_type: str | None = None
    year: int | None = None


@dataclass
class Workbook:
    """A loaded workbook: ordered sheets plus upload metadata."""

    sheets: list[Sheet]
    source_filename: str
    hints: WorkbookHints = field(default_factory=WorkbookHints)
    source_format: str = "xlsx"

    @property
    def cell_count(self) -> int:
        return sum(sheet.row_count * sheet.column_count for sheet in self.sheets)
