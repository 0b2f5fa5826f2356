"""Tests for quarter placement."""

from datetime import date

import pytest

from jiragit_roadmap.models import DateRange, PlanningItem
from jiragit_roadmap.placement import (
    MARKER_END,
    MARKER_MIDDLE,
    MARKER_SINGLE,
    MARKER_START,
    cell_marker,
    place_item,
    place_range,
    quarter_cells,
)
from jiragit_roadmap.status import PLANNED

AXIS = ("Q1 2025", "Q2 2025", "Q3 2025", "Q4 2025")


class TestPlaceRange:
    """Tests for place_range."""

    def test_within_axis(self):
        assert place_range(date(2025, 2, 1), date(2025, 8, 15), AXIS) == (0, 2)

    def test_single_quarter(self):
        assert place_range(date(2025, 4, 1), date(2025, 6, 30), AXIS) == (1, 1)

    def test_start_before_axis_clamps_to_first(self):
        assert place_range(date(2024, 6, 1), date(2025, 5, 1), AXIS) == (0, 1)

    def test_end_after_axis_clamps_to_last(self):
        assert place_range(date(2025, 7, 1), date(2026, 5, 1), AXIS) == (2, 3)

    def test_entirely_outside_axis(self):
        assert place_range(date(2023, 1, 1), date(2023, 2, 1), AXIS) == (0, 3)

    def test_inverted_range_collapses_to_end(self):
        assert place_range(date(2025, 11, 1), date(2025, 2, 1), AXIS) == (0, 0)

    def test_start_after_axis_with_end_inside(self):
        # Start quarter missing -> 0, end inside -> its index
        assert place_range(date(2027, 1, 1), date(2025, 5, 1), AXIS) == (0, 1)

    def test_empty_axis_rejected(self):
        with pytest.raises(ValueError):
            place_range(date(2025, 1, 1), date(2025, 2, 1), ())

    @pytest.mark.parametrize(
        "start,end",
        [
            (date(2020, 1, 1), date(2030, 1, 1)),
            (date(2030, 1, 1), date(2020, 1, 1)),
            (date(2025, 12, 31), date(2025, 1, 1)),
            (date(2025, 5, 5), date(2025, 5, 5)),
        ],
    )
    def test_bounds_always_valid(self, start, end):
        start_index, end_index = place_range(start, end, AXIS)
        assert 0 <= start_index <= end_index <= len(AXIS) - 1


class TestPlaceItem:
    """Tests for place_item."""

    def test_uses_item_dates(self):
        item = PlanningItem(
            kind="jira", status=PLANNED, dates=DateRange(date(2025, 4, 2), date(2025, 12, 1))
        )
        assert place_item(item, AXIS) == (1, 3)


class TestCellMarkers:
    """Tests for cell_marker and quarter_cells."""

    def test_single(self):
        assert cell_marker(2, 2, 2) == MARKER_SINGLE

    def test_span(self):
        assert quarter_cells(0, 3, 4) == [MARKER_START, MARKER_MIDDLE, MARKER_MIDDLE, MARKER_END]

    def test_outside_span(self):
        assert quarter_cells(1, 2, 4) == [None, MARKER_START, MARKER_END, None]
