"""Tests for seasonal/cycle classification."""

import pytest

from agri_calendar_extraction.calendar_model import (
    CalendarType,
    ColumnMap,
    PeriodKind,
    TimeAxisColumn,
)
from agri_calendar_extraction.services.calendar_classifier import (
    classify,
    hint_calendar_type,
    is_ambiguous,
)
from agri_calendar_extraction.workbook import WorkbookHints


def _column_map(months: int, weeks: int) -> ColumnMap:
    columns = [
        TimeAxisColumn(i, f"M{i}", i + 1, PeriodKind.MONTH) for i in range(months)
    ]
    columns += [
        TimeAxisColumn(months + i, f"Week {i + 1}", i + 1, PeriodKind.WEEK)
        for i in range(weeks)
    ]
    return ColumnMap(activity_column_index=None, time_axis_columns=tuple(columns))


class TestHintCalendarType:
    @pytest.mark.parametrize(
        ("hints", "expected"),
        [
            (WorkbookHints(poultry_type="broiler"), CalendarType.CYCLE),
            (WorkbookHints(commodity="Turkey"), CalendarType.CYCLE),
            (WorkbookHints(commodity=" maize "), CalendarType.SEASONAL),
            (WorkbookHints(commodity="unobtainium"), None),
            (WorkbookHints(), None),
            (None, None),
        ],
    )
    def test_hint(
        self, hints: WorkbookHints | None, expected: CalendarType | None
    ) -> None:
        assert hint_calendar_type(hints) == expected

    def test_poultry_type_beats_commodity(self) -> None:
        hints = WorkbookHints(commodity="maize", poultry_type="layer")
        assert hint_calendar_type(hints) is CalendarType.CYCLE


class TestIsAmbiguous:
    def test_empty_axis(self) -> None:
        assert is_ambiguous(0, 0, 0.2)

    def test_within_margin(self) -> None:
        assert is_ambiguous(6, 5, 0.2)

    def test_outside_margin(self) -> None:
        assert not is_ambiguous(12, 1, 0.2)


class TestClassify:
    def test_months_only_is_seasonal(self) -> None:
        assert classify(_column_map(12, 0)) is CalendarType.SEASONAL

    def test_weeks_only_is_cycle(self) -> None:
        assert classify(_column_map(0, 8)) is CalendarType.CYCLE

    def test_majority_decides(self) -> None:
        assert classify(_column_map(10, 2)) is CalendarType.SEASONAL
        assert classify(_column_map(2, 10)) is CalendarType.CYCLE

    def test_tie_with_weeks_is_cycle(self) -> None:
        assert classify(_column_map(3, 3)) is CalendarType.CYCLE

    def test_empty_axis_is_seasonal(self) -> None:
        assert classify(ColumnMap()) is CalendarType.SEASONAL

    def test_hint_breaks_ambiguous_split(self) -> None:
        column_map = _column_map(3, 3)
        hints = WorkbookHints(commodity="maize")
        assert classify(column_map, hints) is CalendarType.SEASONAL

    def test_hint_decides_empty_axis(self) -> None:
        hints = WorkbookHints(poultry_type="broiler")
        assert classify(ColumnMap(), hints) is CalendarType.CYCLE

    def test_hint_ignored_for_clear_split(self) -> None:
        hints = WorkbookHints(poultry_type="broiler")
        assert classify(_column_map(12, 0), hints) is CalendarType.SEASONAL

    def test_margin_widens_hint_window(self) -> None:
        column_map = _column_map(8, 4)
        hints = WorkbookHints(poultry_type="broiler")

        assert classify(column_map, hints, margin=0.2) is CalendarType.SEASONAL
        assert classify(column_map, hints, margin=0.5) is CalendarType.CYCLE

    def test_unknown_hint_keeps_label_vote(self) -> None:
        hints = WorkbookHints(commodity="unobtainium")
        assert classify(_column_map(6, 5), hints) is CalendarType.SEASONAL

    @pytest.mark.parametrize(("months", "weeks"), [(0, 0), (4, 4), (12, 1), (1, 9)])
    def test_classification_is_stable(self, months: int, weeks: int) -> None:
        column_map = _column_map(months, weeks)
        hints = WorkbookHints(commodity="rice")
        assert classify(column_map, hints) is classify(column_map, hints)
