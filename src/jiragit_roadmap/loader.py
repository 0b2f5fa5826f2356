"""Parse aggregated Jira/GitHub data from its JSON representation."""

import json
from datetime import date, datetime

from jiragit_roadmap.exceptions import InvalidInputError
from jiragit_roadmap.models import (
    AggregatedData,
    GitHubIssue,
    GitHubPR,
    JiraIssue,
    Metadata,
)


def _parse_date_field(fields: dict, field_id: str) -> date | None:
    """Parse an ISO date or timestamp value to a date object."""
    value = fields.get(field_id)
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except (ValueError, TypeError):
        return None


def _required_date(fields: dict, field_id: str, ref: str) -> date:
    value = _parse_date_field(fields, field_id)
    if value is None:
        raise InvalidInputError(f"{ref}: missing or invalid {field_id!r}")
    return value


def _strings(fields: dict, field_id: str) -> tuple[str, ...]:
    return tuple(str(v) for v in (fields.get(field_id) or []))


def _planning_fields(raw: dict) -> dict:
    return {
        "planned_start_date": _parse_date_field(raw, "plannedStartDate"),
        "planned_end_date": _parse_date_field(raw, "plannedEndDate"),
        "theme": raw.get("theme") or "",
        "initiative": raw.get("initiative") or "",
        "dependencies": _strings(raw, "dependencies"),
        "priority_score": int(raw.get("priorityScore") or 0),
        "roadmap_status": raw.get("roadmapStatus") or "",
        "milestone": raw.get("milestone") or "",
        "quarter": raw.get("quarter") or "",
    }


def jira_issue_from_dict(raw: dict) -> JiraIssue:
    key = raw.get("key")
    if not key:
        raise InvalidInputError("Jira issue without a key")
    return JiraIssue(
        key=key,
        issue_type=raw.get("issueType") or "",
        summary=raw.get("summary") or "",
        status=raw.get("status") or "",
        url=raw.get("url") or "",
        created_date=_required_date(raw, "createdDate", key),
        updated_date=_required_date(raw, "updatedDate", key),
        priority=raw.get("priority") or "",
        assignee=raw.get("assignee") or "",
        reporter=raw.get("reporter") or "",
        team=raw.get("team") or "",
        labels=_strings(raw, "labels"),
        epic_link=raw.get("epicLink") or "",
        description=raw.get("description") or "",
        fix_versions=_strings(raw, "fixVersions"),
        **_planning_fields(raw),
    )


def github_issue_from_dict(raw: dict) -> GitHubIssue:
    ref = f"{raw.get('repository', '?')}#{raw.get('number', '?')}"
    try:
        number = int(raw["number"])
    except (KeyError, TypeError, ValueError):
        raise InvalidInputError(f"GitHub issue {ref} has no valid number")
    return GitHubIssue(
        title=raw.get("title") or "",
        number=number,
        state=raw.get("state") or "",
        url=raw.get("url") or "",
        repository=raw.get("repository") or "",
        created_date=_required_date(raw, "createdDate", ref),
        updated_date=_required_date(raw, "updatedDate", ref),
        labels=_strings(raw, "labels"),
        assignees=_strings(raw, "assignees"),
        **_planning_fields(raw),
    )


def github_pr_from_dict(raw: dict) -> GitHubPR:
    return GitHubPR(
        title=raw.get("title") or "",
        number=int(raw.get("number") or 0),
        state=raw.get("state") or "",
        url=raw.get("url") or "",
        repository=raw.get("repository") or "",
        is_draft=bool(raw.get("isDraft")),
    )


def metadata_from_dict(raw: dict) -> Metadata:
    fetch_time = None
    if raw.get("fetchTime"):
        try:
            fetch_time = datetime.fromisoformat(str(raw["fetchTime"]))
        except ValueError:
            fetch_time = None
    return Metadata(
        fetch_time=fetch_time,
        jira_projects=_strings(raw, "jiraProjects"),
        github_repos=_strings(raw, "githubRepos"),
        jira_jql=raw.get("jiraJql") or "",
        github_labels=_strings(raw, "githubLabels"),
        version_label=raw.get("versionLabel") or "",
    )


def aggregated_data_from_dict(payload: dict) -> AggregatedData:
    """Build AggregatedData from the fetchers' JSON document.

    Raises:
        InvalidInputError: If the payload or one of its issues is malformed
    """
    if not isinstance(payload, dict):
        raise InvalidInputError("Aggregated data must be a JSON object")
    try:
        return AggregatedData(
            jira_issues=[jira_issue_from_dict(i) for i in payload.get("jiraIssues") or []],
            github_issues=[github_issue_from_dict(i) for i in payload.get("githubIssues") or []],
            github_prs=[github_pr_from_dict(i) for i in payload.get("githubPRs") or []],
            metadata=metadata_from_dict(payload.get("metadata") or {}),
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise InvalidInputError(f"Malformed aggregated data: {e}") from e


def load_aggregated_data(text: str) -> AggregatedData:
    """Parse a JSON string of aggregated data."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Aggregated data is not valid JSON: {e}") from e
    return aggregated_data_from_dict(payload)
