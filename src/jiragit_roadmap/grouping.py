"""Partitioning of planning items into roadmap groups."""

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

from jiragit_roadmap.models import (
    EpicGroup,
    GitHubIssue,
    Group,
    Initiative,
    Milestone,
    PlanningItem,
    Theme,
)
from jiragit_roadmap.placement import place_range
from jiragit_roadmap.status import aggregate_statuses
from jiragit_roadmap.timeframe import quarter_label

logger = logging.getLogger(__name__)

NO_EPIC = "No Epic"
NO_THEME = "No Theme"
NO_TEAM = "No Team"
NO_QUARTER = "No Quarter"
ALL_ITEMS = "All Items"

NO_EPIC_NAME = "Issues without Epic"

GROUPING_KEYS = ("epic", "theme", "team", "quarter")


def _epic_label(item: PlanningItem) -> str:
    if item.jira_issue is not None and item.jira_issue.epic_link:
        return item.jira_issue.epic_link
    return NO_EPIC


def _theme_label(item: PlanningItem) -> str:
    if item.jira_issue is not None:
        issue = item.jira_issue
        # Issue type stands in for a missing theme
        return issue.theme or issue.issue_type or NO_THEME
    issue = item.github_issue
    if issue.theme:
        return issue.theme
    if issue.labels:
        return issue.labels[0]
    return NO_THEME


def _team_label(item: PlanningItem) -> str:
    if item.jira_issue is not None and item.jira_issue.team:
        return item.jira_issue.team
    return NO_TEAM


def _quarter_label(item: PlanningItem) -> str:
    if item.source.quarter:
        return item.source.quarter
    if item.start_date is None:
        return NO_QUARTER
    return quarter_label(item.start_date)


_LABELLERS: dict[str, Callable[[PlanningItem], str]] = {
    "epic": _epic_label,
    "theme": _theme_label,
    "team": _team_label,
    "quarter": _quarter_label,
}


def partition(
    items: Iterable[PlanningItem], label_for: Callable[[PlanningItem], str]
) -> tuple[Group, ...]:
    """Stable partition: groups in first-seen order, items in input order."""
    buckets: dict[str, list[PlanningItem]] = {}
    for item in items:
        buckets.setdefault(label_for(item), []).append(item)
    return tuple(Group(label, tuple(members)) for label, members in buckets.items())


def group_items(items: Sequence[PlanningItem], grouping: str) -> tuple[Group, ...]:
    """Group items by "epic", "theme", "team" or "quarter".

    Any other key yields a single "All Items" group.
    """
    label_for = _LABELLERS.get(grouping)
    if label_for is None:
        logger.debug("Unknown grouping %r, placing all items in one group", grouping)
        return (Group(ALL_ITEMS, tuple(items)),)
    return partition(items, label_for)


def extract_milestones(items: Iterable[PlanningItem]) -> tuple[Milestone, ...]:
    """Collect items by milestone name.

    The target date is the end date of the first item seen for the milestone
    and the status is the aggregate over all of its items.
    """
    groups = partition(
        (item for item in items if item.source.milestone),
        lambda item: item.source.milestone,
    )
    return tuple(
        Milestone(
            name=group.label,
            target_date=group.items[0].end_date,
            status=aggregate_statuses(item.status for item in group.items),
            items=group.items,
        )
        for group in groups
    )


def _has_strategic_fields(item: PlanningItem) -> bool:
    source = item.source
    return bool(
        source.theme
        and source.initiative
        and source.planned_start_date is not None
        and source.planned_end_date is not None
    )


def _build_initiative(name: str, members: tuple[PlanningItem, ...], axis: Sequence[str]) -> Initiative:
    start_quarter, end_quarter = place_range(
        min(item.start_date for item in members),
        max(item.end_date for item in members),
        axis,
    )
    return Initiative(
        name=name,
        status=aggregate_statuses(item.status for item in members),
        start_quarter=start_quarter,
        end_quarter=end_quarter,
        items=members,
    )


def extract_themes(items: Iterable[PlanningItem], axis: Sequence[str]) -> tuple[Theme, ...]:
    """Build theme -> initiative aggregates for the strategic view.

    Only items with a theme, an initiative and explicit planned dates take
    part. Each initiative spans from the earliest start to the latest end of
    its members.
    """
    themes = partition(
        (item for item in items if _has_strategic_fields(item)),
        lambda item: item.source.theme,
    )
    result = []
    for theme in themes:
        initiatives = partition(theme.items, lambda item: item.source.initiative)
        result.append(Theme(
            name=theme.label,
            initiatives=tuple(
                _build_initiative(group.label, group.items, axis) for group in initiatives
            ),
        ))
    return tuple(result)


class EpicMatcher(Protocol):
    """Associates a GitHub issue with one of the known Jira epics."""

    def match(self, issue: GitHubIssue, epic_keys: Sequence[str]) -> str | None:
        ...


class TitleSubstringMatcher:
    """Best-effort association: the first epic key that appears in the issue title."""

    def match(self, issue: GitHubIssue, epic_keys: Sequence[str]) -> str | None:
        for key in epic_keys:
            if key in issue.title:
                return key
        return None


def group_by_epic(
    items: Sequence[PlanningItem], matcher: EpicMatcher | None = None
) -> tuple[EpicGroup, ...]:
    """Group items under Jira epics for the epic Gantt view.

    Epics in the data become headers in first-seen order, even without
    children. Items linking to an epic that is not in the data get a header
    of their own after those. "No Epic" is always present and always last.
    """
    matcher = matcher or TitleSubstringMatcher()

    epic_names: dict[str, str] = {}
    for item in items:
        issue = item.jira_issue
        if issue is not None and issue.issue_type == "Epic":
            epic_names.setdefault(issue.key, issue.summary)
    known_epics = list(epic_names)

    buckets: dict[str, list[PlanningItem]] = {key: [] for key in known_epics}
    for item in items:
        if item.jira_issue is not None:
            if item.jira_issue.issue_type == "Epic":
                continue
            epic_key = item.jira_issue.epic_link or NO_EPIC
        else:
            epic_key = matcher.match(item.github_issue, known_epics) or NO_EPIC
        buckets.setdefault(epic_key, []).append(item)

    no_epic = buckets.pop(NO_EPIC, [])
    groups = [
        EpicGroup(key=key, name=epic_names.get(key, key), items=tuple(members))
        for key, members in buckets.items()
    ]
    groups.append(EpicGroup(key=NO_EPIC, name=NO_EPIC_NAME, items=tuple(no_epic)))
    return tuple(groups)
