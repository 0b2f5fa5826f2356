"""Placement of date ranges onto the quarter axis."""

from collections.abc import Sequence
from datetime import date

from jiragit_roadmap.models import PlanningItem
from jiragit_roadmap.timeframe import quarter_label

MARKER_SINGLE = "single"
MARKER_START = "start"
MARKER_MIDDLE = "middle"
MARKER_END = "end"


def place_range(start: date, end: date, axis: Sequence[str]) -> tuple[int, int]:
    """Return inclusive (start_index, end_index) bounds of a range on the axis.

    A start quarter outside the axis clamps to the first column and an end
    quarter outside the axis clamps to the last. An inverted result is
    collapsed onto the end index.
    """
    if not axis:
        raise ValueError("quarter axis is empty")

    start_label = quarter_label(start)
    end_label = quarter_label(end)
    start_index = axis.index(start_label) if start_label in axis else 0
    end_index = axis.index(end_label) if end_label in axis else len(axis) - 1

    if start_index > end_index:
        start_index = end_index
    return start_index, end_index


def place_item(item: PlanningItem, axis: Sequence[str]) -> tuple[int, int]:
    return place_range(item.start_date, item.end_date, axis)


def cell_marker(index: int, start_index: int, end_index: int) -> str | None:
    """Classify an axis column relative to a placed span; None when outside it."""
    if index < start_index or index > end_index:
        return None
    if start_index == end_index:
        return MARKER_SINGLE
    if index == start_index:
        return MARKER_START
    if index == end_index:
        return MARKER_END
    return MARKER_MIDDLE


def quarter_cells(start_index: int, end_index: int, axis_length: int) -> list[str | None]:
    return [cell_marker(i, start_index, end_index) for i in range(axis_length)]
