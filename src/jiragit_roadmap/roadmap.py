"""Roadmap data fetching from JIRA."""

import logging
from datetime import date

from jiragit_roadmap.config import Config, config_exists, load_config
from jiragit_roadmap.exceptions import (
    ConfigNotFoundError,
    InvalidConfigError,
    InvalidJqlError,
    JiraAuthError,
    JiraConnectionError,
    JiraRateLimitError,
    NoIssuesFoundError,
    RoadmapConfigError,
)
from jiragit_roadmap.jira_client import (
    AuthenticationError,
    JiraClient,
    RateLimitError,
    build_jql,
)
from jiragit_roadmap.jira_client import (
    ConnectionError as JiraClientConnectionError,
)
from jiragit_roadmap.models import AggregatedData, JiraIssue

logger = logging.getLogger(__name__)

# Outward link types that mean "this issue depends on the linked one"
DEPENDENCY_LINK_TYPES = ("Blocks", "Dependency", "Depends")


def _parse_date_field(fields: dict, field_id: str | None) -> date | None:
    """Parse a JIRA date or datetime field value to a date object."""
    if not field_id:
        return None
    value = fields.get(field_id)
    if not value:
        return None
    try:
        # JIRA date fields are typically "YYYY-MM-DD"
        return date.fromisoformat(str(value)[:10])
    except (ValueError, TypeError):
        return None


def _field_text(fields: dict, field_id: str | None) -> str:
    """Read a custom field as text; select fields arrive as {"value": ...}."""
    if not field_id:
        return ""
    value = fields.get(field_id)
    if isinstance(value, dict):
        value = value.get("value") or value.get("name") or value.get("key")
    if isinstance(value, list):
        value = value[0] if value else None
        if isinstance(value, dict):
            value = value.get("value") or value.get("name")
    return str(value) if value else ""


def _field_keys(fields: dict, field_id: str | None) -> list[str]:
    if not field_id:
        return []
    value = fields.get(field_id)
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, list):
        return [str(v.get("key", "")) if isinstance(v, dict) else str(v) for v in value if v]
    return []


def _linked_dependencies(fields: dict) -> list[str]:
    """Keys of issues this one depends on, from its issue links."""
    deps = []
    for link in fields.get("issuelinks", []):
        link_type = link.get("type", {}).get("name", "")
        if link_type not in DEPENDENCY_LINK_TYPES:
            continue
        # The inward side of "X blocks Y" is the blocker
        inward = link.get("inwardIssue")
        if inward and inward.get("key"):
            deps.append(inward["key"])
    return deps


def _person(fields: dict, field_id: str) -> str:
    person = fields.get(field_id) or {}
    return person.get("displayName", "") if isinstance(person, dict) else str(person)


def jira_issue_from_raw(raw: dict, config: Config) -> JiraIssue:
    """Convert a raw JIRA issue into a JiraIssue using the configured fields."""
    key = raw["key"]
    fields = raw.get("fields", {})
    custom = config.fields

    created = _parse_date_field(fields, "created") or date.today()
    updated = _parse_date_field(fields, "updated") or created

    epic_link = _field_text(fields, custom.get("epic_link"))
    if not epic_link:
        parent = fields.get("parent") or {}
        if parent.get("fields", {}).get("issuetype", {}).get("name") == "Epic":
            epic_link = parent.get("key", "")

    fix_versions = tuple(v.get("name", "") for v in fields.get("fixVersions") or [])
    milestone = _field_text(fields, custom.get("milestone")) or (fix_versions[0] if fix_versions else "")

    dependencies = _field_keys(fields, custom.get("dependencies")) or _linked_dependencies(fields)

    priority_score = 0
    score = fields.get(custom.get("priority_score") or "")
    if isinstance(score, (int, float)):
        priority_score = int(score)

    description = fields.get("description")
    return JiraIssue(
        key=key,
        issue_type=fields.get("issuetype", {}).get("name", ""),
        summary=fields.get("summary", ""),
        status=fields.get("status", {}).get("name", ""),
        url=f"{config.jira_url.rstrip('/')}/browse/{key}",
        created_date=created,
        updated_date=updated,
        priority=(fields.get("priority") or {}).get("name", ""),
        assignee=_person(fields, "assignee"),
        reporter=_person(fields, "reporter"),
        team=_field_text(fields, custom.get("team")),
        labels=tuple(fields.get("labels") or []),
        epic_link=epic_link,
        description=description if isinstance(description, str) else "",
        fix_versions=fix_versions,
        planned_start_date=_parse_date_field(fields, custom.get("start_date")),
        planned_end_date=_parse_date_field(fields, custom.get("end_date")),
        theme=_field_text(fields, custom.get("theme")),
        initiative=_field_text(fields, custom.get("initiative")),
        dependencies=tuple(dependencies),
        priority_score=priority_score,
        roadmap_status=_field_text(fields, custom.get("roadmap_status")),
        milestone=milestone,
        quarter=_field_text(fields, custom.get("quarter")),
    )


def fetch_jira_issues(jql: str) -> list[JiraIssue]:
    """Fetch roadmap issues from JIRA.

    Args:
        jql: JQL query selecting the issues to plan

    Returns:
        JiraIssue records in the order JIRA returned them

    Raises:
        ConfigNotFoundError: If config file not found
        InvalidConfigError: If config is invalid
        RoadmapConfigError: If JIRA connection settings are missing
        JiraAuthError: If JIRA authentication fails
        JiraRateLimitError: If rate limited
        JiraConnectionError: If cannot connect
        InvalidJqlError: If JQL is invalid
        NoIssuesFoundError: If no issues match query
    """
    if not config_exists():
        raise ConfigNotFoundError(
            "Configuration not found. Create ~/.jiragit-roadmap/config.toml to set up."
        )

    try:
        config = load_config()
    except ValueError as e:
        raise InvalidConfigError(f"Invalid configuration: {e}")

    if not config.has_jira:
        raise RoadmapConfigError(
            "JIRA connection is not configured. Add a [jira] section to "
            "~/.jiragit-roadmap/config.toml with url, email and api_token."
        )

    client = JiraClient(config)
    custom_fields = sorted(set(config.fields.values()))

    try:
        raw_issues = client.search_issues(
            build_jql(config.jira_projects, jql), extra_fields=custom_fields,
        )
    except AuthenticationError:
        raise JiraAuthError(
            "JIRA authentication failed. Check your credentials in "
            "~/.jiragit-roadmap/config.toml."
        )
    except RateLimitError:
        raise JiraRateLimitError(
            "JIRA rate limit exceeded. Please wait a moment and try again."
        )
    except JiraClientConnectionError as e:
        raise JiraConnectionError(str(e))
    except ValueError as e:
        raise InvalidJqlError(f"Invalid JQL query: {e}. Check your query syntax.")

    if not raw_issues:
        raise NoIssuesFoundError("No issues found matching your query.")

    issues = [jira_issue_from_raw(raw, config) for raw in raw_issues]
    logger.info("Fetched %d JIRA issues for %r", len(issues), jql)
    return issues


def fetch_roadmap_data(jql: str, base: AggregatedData | None = None) -> AggregatedData:
    """Combine freshly fetched JIRA issues with GitHub data already on hand."""
    base = base or AggregatedData()
    return AggregatedData(
        jira_issues=fetch_jira_issues(jql),
        github_issues=list(base.github_issues),
        github_prs=list(base.github_prs),
        metadata=base.metadata,
    )
