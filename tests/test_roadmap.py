"""Tests for fetching roadmap issues from JIRA."""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from jiragit_roadmap.config import Config
from jiragit_roadmap.exceptions import (
    ConfigNotFoundError,
    InvalidConfigError,
    InvalidJqlError,
    JiraAuthError,
    NoIssuesFoundError,
    RoadmapConfigError,
)
from jiragit_roadmap.jira_client import AuthenticationError
from jiragit_roadmap.models import AggregatedData, GitHubIssue, Metadata
from jiragit_roadmap.roadmap import (
    _field_text,
    _linked_dependencies,
    fetch_jira_issues,
    fetch_roadmap_data,
    jira_issue_from_raw,
)

FIELDS = {
    "start_date": "cf_start",
    "end_date": "cf_end",
    "theme": "cf_theme",
    "team": "cf_team",
    "roadmap_status": "cf_status",
    "priority_score": "cf_score",
}


def _make_config(**kwargs):
    defaults = {
        "jira_url": "https://jira.example.com/",
        "jira_email": "me@example.com",
        "jira_api_token": "token",
        "fields": dict(FIELDS),
    }
    defaults.update(kwargs)
    return Config(**defaults)


def _make_raw_issue(key="PROJ-1", **fields):
    base = {
        "summary": f"Summary {key}",
        "issuetype": {"name": "Story"},
        "status": {"name": "In Progress"},
        "created": "2025-01-10T09:00:00.000+0000",
        "updated": "2025-01-20T09:00:00.000+0000",
        "issuelinks": [],
    }
    base.update(fields)
    return {"key": key, "fields": base}


class TestFieldText:
    """Tests for _field_text helper."""

    def test_plain_string(self):
        assert _field_text({"cf": "Growth"}, "cf") == "Growth"

    def test_select_option(self):
        assert _field_text({"cf": {"value": "Core", "id": "1"}}, "cf") == "Core"

    def test_multi_select(self):
        assert _field_text({"cf": [{"value": "A"}, {"value": "B"}]}, "cf") == "A"

    def test_unconfigured(self):
        assert _field_text({"cf": "x"}, None) == ""


class TestLinkedDependencies:
    """Tests for _linked_dependencies."""

    def test_blocked_by_links(self):
        fields = {"issuelinks": [
            {"type": {"name": "Blocks"}, "inwardIssue": {"key": "PROJ-9"}},
            {"type": {"name": "Blocks"}, "outwardIssue": {"key": "PROJ-8"}},
            {"type": {"name": "Relates"}, "inwardIssue": {"key": "PROJ-7"}},
        ]}
        assert _linked_dependencies(fields) == ["PROJ-9"]


class TestJiraIssueFromRaw:
    """Tests for jira_issue_from_raw."""

    def test_maps_standard_and_custom_fields(self):
        raw = _make_raw_issue(
            assignee={"displayName": "Alex"},
            priority={"name": "High"},
            labels=["web"],
            fixVersions=[{"name": "v1.0"}, {"name": "v1.1"}],
            cf_start="2025-02-01",
            cf_end="2025-04-30",
            cf_theme={"value": "Growth"},
            cf_team="Core",
            cf_status="At Risk",
            cf_score=75,
        )
        issue = jira_issue_from_raw(raw, _make_config())
        assert issue.url == "https://jira.example.com/browse/PROJ-1"
        assert issue.created_date == date(2025, 1, 10)
        assert issue.assignee == "Alex"
        assert issue.priority == "High"
        assert issue.planned_start_date == date(2025, 2, 1)
        assert issue.planned_end_date == date(2025, 4, 30)
        assert issue.theme == "Growth"
        assert issue.team == "Core"
        assert issue.roadmap_status == "At Risk"
        assert issue.priority_score == 75
        assert issue.milestone == "v1.0"
        assert issue.fix_versions == ("v1.0", "v1.1")

    def test_epic_link_from_parent(self):
        raw = _make_raw_issue(parent={"key": "PROJ-0", "fields": {"issuetype": {"name": "Epic"}}})
        assert jira_issue_from_raw(raw, _make_config()).epic_link == "PROJ-0"

    def test_parent_that_is_not_an_epic(self):
        raw = _make_raw_issue(parent={"key": "PROJ-0", "fields": {"issuetype": {"name": "Story"}}})
        assert jira_issue_from_raw(raw, _make_config()).epic_link == ""

    def test_dependencies_from_links(self):
        raw = _make_raw_issue(issuelinks=[
            {"type": {"name": "Blocks"}, "inwardIssue": {"key": "PROJ-5"}},
        ])
        assert jira_issue_from_raw(raw, _make_config()).dependencies == ("PROJ-5",)


class TestFetchJiraIssues:
    """Tests for fetch_jira_issues."""

    @patch("jiragit_roadmap.roadmap.config_exists", return_value=False)
    def test_raises_when_no_config(self, mock_exists):
        with pytest.raises(ConfigNotFoundError):
            fetch_jira_issues("project = PROJ")

    @patch("jiragit_roadmap.roadmap.load_config")
    @patch("jiragit_roadmap.roadmap.config_exists", return_value=True)
    def test_raises_when_invalid_config(self, mock_exists, mock_load):
        mock_load.side_effect = ValueError("bad config")
        with pytest.raises(InvalidConfigError):
            fetch_jira_issues("project = PROJ")

    @patch("jiragit_roadmap.roadmap.load_config")
    @patch("jiragit_roadmap.roadmap.config_exists", return_value=True)
    def test_raises_when_jira_not_configured(self, mock_exists, mock_load):
        mock_load.return_value = Config()
        with pytest.raises(RoadmapConfigError, match="not configured"):
            fetch_jira_issues("project = PROJ")

    @patch("jiragit_roadmap.roadmap.JiraClient")
    @patch("jiragit_roadmap.roadmap.load_config")
    @patch("jiragit_roadmap.roadmap.config_exists", return_value=True)
    def test_raises_when_no_issues(self, mock_exists, mock_load, mock_jira_cls):
        mock_load.return_value = _make_config()
        mock_client = MagicMock()
        mock_client.search_issues.return_value = []
        mock_jira_cls.return_value = mock_client

        with pytest.raises(NoIssuesFoundError):
            fetch_jira_issues("project = PROJ")

    @patch("jiragit_roadmap.roadmap.JiraClient")
    @patch("jiragit_roadmap.roadmap.load_config")
    @patch("jiragit_roadmap.roadmap.config_exists", return_value=True)
    def test_maps_auth_error(self, mock_exists, mock_load, mock_jira_cls):
        mock_load.return_value = _make_config()
        mock_client = MagicMock()
        mock_client.search_issues.side_effect = AuthenticationError("nope")
        mock_jira_cls.return_value = mock_client

        with pytest.raises(JiraAuthError):
            fetch_jira_issues("project = PROJ")

    @patch("jiragit_roadmap.roadmap.JiraClient")
    @patch("jiragit_roadmap.roadmap.load_config")
    @patch("jiragit_roadmap.roadmap.config_exists", return_value=True)
    def test_maps_invalid_jql(self, mock_exists, mock_load, mock_jira_cls):
        mock_load.return_value = _make_config()
        mock_client = MagicMock()
        mock_client.search_issues.side_effect = ValueError("syntax")
        mock_jira_cls.return_value = mock_client

        with pytest.raises(InvalidJqlError):
            fetch_jira_issues("project = = PROJ")

    @patch("jiragit_roadmap.roadmap.JiraClient")
    @patch("jiragit_roadmap.roadmap.load_config")
    @patch("jiragit_roadmap.roadmap.config_exists", return_value=True)
    def test_requests_custom_fields(self, mock_exists, mock_load, mock_jira_cls):
        mock_load.return_value = _make_config()
        mock_client = MagicMock()
        mock_client.search_issues.return_value = [_make_raw_issue("PROJ-1"), _make_raw_issue("PROJ-2")]
        mock_jira_cls.return_value = mock_client

        issues = fetch_jira_issues("project = PROJ")

        assert [i.key for i in issues] == ["PROJ-1", "PROJ-2"]
        mock_client.search_issues.assert_called_once_with(
            "project = PROJ", extra_fields=sorted(FIELDS.values()),
        )

    @patch("jiragit_roadmap.roadmap.fetch_jira_issues")
    def test_fetch_roadmap_data_keeps_github_issues(self, mock_fetch):
        mock_fetch.return_value = []
        github = GitHubIssue(
            title="x", number=1, state="open", url="#", repository="acme/app",
            created_date=date(2025, 1, 1), updated_date=date(2025, 1, 1),
        )
        base = AggregatedData(github_issues=[github], metadata=Metadata(version_label="v3"))
        data = fetch_roadmap_data("project = PROJ", base=base)
        assert data.metadata.version_label == "v3"
        assert data.github_issues == [github]
        assert data.jira_issues == []

    @patch("jiragit_roadmap.roadmap.JiraClient")
    @patch("jiragit_roadmap.roadmap.load_config")
    @patch("jiragit_roadmap.roadmap.config_exists", return_value=True)
    def test_scopes_query_to_configured_projects(self, mock_exists, mock_load, mock_jira_cls):
        mock_load.return_value = _make_config(jira_projects=["PROJ"])
        mock_client = MagicMock()
        mock_client.search_issues.return_value = [_make_raw_issue("PROJ-1")]
        mock_jira_cls.return_value = mock_client

        fetch_jira_issues("type = Story")

        assert mock_client.search_issues.call_args.args == ('project = "PROJ" AND (type = Story)',)
