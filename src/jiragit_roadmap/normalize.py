"""Convert Jira and GitHub issues into planning items."""

import logging
from datetime import date, timedelta

from jiragit_roadmap.models import (
    SOURCE_GITHUB,
    SOURCE_JIRA,
    AggregatedData,
    DateRange,
    GitHubIssue,
    JiraIssue,
    PlanningItem,
)
from jiragit_roadmap.status import (
    GITHUB_DONE_STATES,
    JIRA_DONE_STATUSES,
    canonical_status,
    derive_github_status,
    derive_jira_status,
)

logger = logging.getLogger(__name__)

# Placeholder duration for work that is still open and has no planned end
IN_FLIGHT_DAYS = 14


def infer_dates(
    planned_start: date | None,
    planned_end: date | None,
    created: date,
    updated: date,
    is_done: bool,
) -> DateRange:
    """Fill in missing planning dates from the issue timestamps.

    Start falls back to the creation date. End falls back to the last update
    for finished work, otherwise to two weeks after the start.
    """
    start = planned_start or created
    if planned_end is not None:
        end = planned_end
    elif is_done:
        end = updated
    else:
        end = start + timedelta(days=IN_FLIGHT_DAYS)
    return DateRange(start, end)


def _resolve_status(explicit: str, derived: str, key: str) -> str:
    if not explicit:
        return derived
    status = canonical_status(explicit)
    if status is None:
        logger.warning("Ignoring unknown roadmap status %r on %s", explicit, key)
        return derived
    return status


def _check_range(dates: DateRange, key: str) -> None:
    if dates.inverted:
        logger.warning(
            "%s ends (%s) before it starts (%s)", key, dates.end, dates.start
        )


def normalize_jira_issue(issue: JiraIssue) -> PlanningItem:
    dates = infer_dates(
        issue.planned_start_date,
        issue.planned_end_date,
        issue.created_date,
        issue.updated_date,
        issue.status in JIRA_DONE_STATUSES,
    )
    _check_range(dates, issue.key)
    return PlanningItem(
        kind=SOURCE_JIRA,
        status=_resolve_status(issue.roadmap_status, derive_jira_status(issue.status), issue.key),
        dates=dates,
        jira_issue=issue,
        dependencies=tuple(issue.dependencies),
    )


def normalize_github_issue(issue: GitHubIssue) -> PlanningItem:
    key = f"{issue.repository}#{issue.number}"
    dates = infer_dates(
        issue.planned_start_date,
        issue.planned_end_date,
        issue.created_date,
        issue.updated_date,
        issue.state in GITHUB_DONE_STATES,
    )
    _check_range(dates, key)
    return PlanningItem(
        kind=SOURCE_GITHUB,
        status=_resolve_status(issue.roadmap_status, derive_github_status(issue.state), key),
        dates=dates,
        github_issue=issue,
        dependencies=tuple(issue.dependencies),
    )


def normalize_items(data: AggregatedData) -> tuple[PlanningItem, ...]:
    """Normalize every Jira issue, then every GitHub issue, in input order.

    Pull requests are not part of the roadmap.
    """
    items = [normalize_jira_issue(issue) for issue in data.jira_issues]
    items.extend(normalize_github_issue(issue) for issue in data.github_issues)
    logger.debug(
        "Normalized %d Jira and %d GitHub issues (%d pull requests skipped)",
        len(data.jira_issues), len(data.github_issues), len(data.github_prs),
    )
    return tuple(items)
