"""Timeframe expressions and the quarter axis shared by all roadmap views."""

import logging
import re
from datetime import date

from jiragit_roadmap.models import DateRange

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MONTHS = 12

_MONTHS_RE = re.compile(r"^(\d+)months$")
_YEARS_RE = re.compile(r"^(\d+)years?$")
_QUARTERS_RE = re.compile(r"^Q(\d+)\s*-\s*Q(\d+)\s+(\d+)$")


def add_months(d: date, months: int) -> date:
    """Shift a first-of-month date by a whole number of months."""
    month_index = d.month - 1 + months
    return date(d.year + month_index // 12, month_index % 12 + 1, 1)


def quarter_label(d: date) -> str:
    """Format the quarter containing a date, e.g. "Q2 2025"."""
    return f"Q{(d.month - 1) // 3 + 1} {d.year}"


def parse_timeframe(expression: str, today: date | None = None) -> DateRange | None:
    """Parse a timeframe expression into a date range.

    Recognised forms, checked in order:
        "6months"      -> first of the current month, plus 6 months
        "1year"/"2years" -> first of the current month, plus N years
        "Q1-Q3 2025"   -> first day of Q1 up to the first day after Q3

    The end of the range is exclusive. Returns None when the expression is
    empty, not recognised, or reaches past the last representable date.
    """
    expression = (expression or "").strip()
    if not expression:
        return None

    month_start = (today or date.today()).replace(day=1)

    try:
        match = _MONTHS_RE.match(expression)
        if match and int(match.group(1)) > 0:
            return DateRange(month_start, add_months(month_start, int(match.group(1))))

        match = _YEARS_RE.match(expression)
        if match and int(match.group(1)) > 0:
            return DateRange(month_start, add_months(month_start, 12 * int(match.group(1))))

        match = _QUARTERS_RE.match(expression)
        if match:
            start_q, end_q, year = (int(g) for g in match.groups())
            # Qb before Qa is kept as an inverted range
            if 1 <= start_q <= 4 and 1 <= end_q <= 4 and year > 0:
                start = date(year, (start_q - 1) * 3 + 1, 1)
                return DateRange(start, add_months(date(year, end_q * 3, 1), 1))
    except (ValueError, OverflowError):
        logger.debug("Timeframe %r falls outside the supported calendar", expression)

    return None


def default_timeframe(today: date | None = None) -> DateRange:
    """The twelve-month window starting at the current month."""
    month_start = (today or date.today()).replace(day=1)
    return DateRange(month_start, add_months(month_start, DEFAULT_WINDOW_MONTHS))


def resolve_timeframe(expression: str, today: date | None = None) -> DateRange:
    """Parse a timeframe expression, falling back to the default window."""
    parsed = parse_timeframe(expression, today=today)
    if parsed is not None:
        return parsed
    if expression and expression.strip():
        logger.warning("Unrecognised timeframe %r, using the default window", expression)
    else:
        logger.debug("No timeframe given, using the default window")
    return default_timeframe(today=today)


def generate_quarters(start: date, end: date) -> tuple[str, ...]:
    """List the quarters touched by the months in [start, end).

    Always returns at least the quarter of ``start``.
    """
    quarters: list[str] = []
    current = date(start.year, (start.month - 1) // 3 * 3 + 1, 1)
    while current < end:
        quarters.append(quarter_label(current))
        if current.year == date.max.year and current.month == 10:
            break
        current = add_months(current, 3)

    if not quarters:
        quarters.append(quarter_label(start))
    return tuple(quarters)


def quarter_axis(timeframe: DateRange) -> tuple[str, ...]:
    return generate_quarters(timeframe.start, timeframe.end)

