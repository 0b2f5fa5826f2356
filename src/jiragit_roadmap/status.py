"""Canonical roadmap statuses: derivation from source states and aggregation."""

from collections import Counter
from collections.abc import Iterable
from functools import reduce

PLANNED = "Planned"
IN_PROGRESS = "In Progress"
AT_RISK = "At Risk"
BLOCKED = "Blocked"
COMPLETED = "Completed"

# Legend order
CANONICAL_STATUSES = (PLANNED, IN_PROGRESS, AT_RISK, BLOCKED, COMPLETED)

DEFAULT_STATUS = PLANNED

JIRA_STATUS_MAP: dict[str, str] = {
    "To Do": PLANNED,
    "Open": PLANNED,
    "Backlog": PLANNED,
    "In Progress": IN_PROGRESS,
    "In Review": IN_PROGRESS,
    "Blocked": BLOCKED,
    "Impediment": BLOCKED,
    "Done": COMPLETED,
    "Closed": COMPLETED,
    "Resolved": COMPLETED,
}

GITHUB_STATE_MAP: dict[str, str] = {
    "open": IN_PROGRESS,
    "closed": COMPLETED,
}

# Native states that mean the work is finished
JIRA_DONE_STATUSES = frozenset({"Done", "Closed", "Resolved"})
GITHUB_DONE_STATES = frozenset({"closed"})

STATUS_PRIORITY: dict[str, int] = {
    BLOCKED: 5,
    AT_RISK: 4,
    IN_PROGRESS: 3,
    PLANNED: 2,
    COMPLETED: 1,
}

STATUS_COLORS: dict[str, str] = {
    PLANNED: "#0052CC",
    IN_PROGRESS: "#36B37E",
    AT_RISK: "#FF8B00",
    BLOCKED: "#FF5630",
    COMPLETED: "#6554C0",
}

_CANONICAL_BY_NAME = {s.lower(): s for s in CANONICAL_STATUSES}


def derive_jira_status(status: str) -> str:
    """Map a JIRA workflow status name to a canonical roadmap status."""
    return JIRA_STATUS_MAP.get(status, DEFAULT_STATUS)


def derive_github_status(state: str) -> str:
    """Map a GitHub issue state to a canonical roadmap status."""
    return GITHUB_STATE_MAP.get(state, DEFAULT_STATUS)


def canonical_status(value: str) -> str | None:
    """Return the canonical spelling of an explicit roadmap status, if it is one."""
    return _CANONICAL_BY_NAME.get(value.strip().lower()) if value else None


def aggregate_status(current: str | None, new: str) -> str | None:
    """Keep whichever of two statuses has the higher priority.

    Priority: Blocked > At Risk > In Progress > Planned > Completed.
    """
    if STATUS_PRIORITY.get(new, 0) > STATUS_PRIORITY.get(current, 0):
        return new
    return current


def aggregate_statuses(statuses: Iterable[str]) -> str | None:
    """Fold a collection of statuses into one. Returns None when empty."""
    return reduce(aggregate_status, statuses, None)


def count_statuses(statuses: Iterable[str]) -> list[tuple[str, int]]:
    """Count statuses, in legend order, omitting statuses that never occur."""
    counts = Counter(statuses)
    return [(s, counts[s]) for s in CANONICAL_STATUSES if counts[s]]


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, STATUS_COLORS[DEFAULT_STATUS])


def status_text_color(status: str) -> str:
    # White text on the darker backgrounds
    if status in (BLOCKED, AT_RISK):
        return "#FFFFFF"
    return "#000000"
