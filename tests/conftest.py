from __future__ import annotations

import pytest

from agri_calendar_extraction.calendar_model import ColumnMap
from agri_calendar_extraction.services.color_resolver import ColorResolver
from agri_calendar_extraction.services.structure_detector import StructureDetector
from agri_calendar_extraction.workbook import Sheet
from tests.fixtures import RED, make_sheet


@pytest.fixture
def resolver() -> ColorResolver:
    return ColorResolver()


@pytest.fixture
def land_prep_sheet() -> Sheet:
    """Header on row 0 and one activity on row 1, JAN and FEB filled red."""
    return make_sheet(
        [
            ["S/N", "Activity", "JAN", "FEB", "MAR"],
            ["1", "Land Prep", "X", "X", ""],
        ],
        name="Maize",
        fills={(1, 2): RED, (1, 3): RED},
    )


@pytest.fixture
def land_prep_map(land_prep_sheet: Sheet) -> ColumnMap:
    return StructureDetector().detect(land_prep_sheet)
