"""Tests for roadmap HTTP route handlers."""

import json
import logging
from unittest.mock import patch

from jiragit_roadmap.exceptions import JiraAuthError, NoIssuesFoundError
from jiragit_roadmap.models import AggregatedData

DATA = {
    "jiraIssues": [
        {"key": "PROJ-1", "issueType": "Story", "summary": "Checkout flow",
         "status": "In Progress", "url": "https://jira.example.com/browse/PROJ-1",
         "createdDate": "2025-01-10", "updatedDate": "2025-01-20", "theme": "Growth"},
    ],
    "githubIssues": [],
    "githubPRs": [],
}


class TestRoadmapRoutes:
    """Tests for roadmap HTTP route handlers."""

    def setup_method(self):
        from jiragit_roadmap.web.app import create_app
        self.app = create_app()
        self.app.config["TESTING"] = True
        self.client = self.app.test_client()

    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_health_without_config(self, mock_exists):
        resp = self.client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["config_loaded"] is False

    def test_get_index_renders(self):
        with patch("jiragit_roadmap.web.routes.config_exists", return_value=False):
            resp = self.client.get("/")
        assert resp.status_code == 200
        assert b"Roadmap" in resp.data
        assert b'name="jql"' not in resp.data

    def test_post_requires_input(self):
        with patch("jiragit_roadmap.web.routes.config_exists", return_value=False):
            resp = self.client.post("/", data={"jql": "", "data": ""})
        assert resp.status_code == 400

    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_post_with_data(self, mock_exists):
        resp = self.client.post("/", data={"data": json.dumps(DATA), "timeframe": "Q1-Q4 2025"})
        assert resp.status_code == 200
        assert b"PROJ-1" in resp.data
        assert b"Q3 2025" in resp.data

    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_post_invalid_data(self, mock_exists):
        resp = self.client.post("/", data={"data": "{nope"})
        assert resp.status_code == 400
        assert b"not valid JSON" in resp.data

    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_post_unsupported_view(self, mock_exists):
        resp = self.client.post("/", data={"data": json.dumps(DATA), "view": "kanban"})
        assert resp.status_code == 400

    @patch("jiragit_roadmap.web.routes.fetch_roadmap_data")
    @patch("jiragit_roadmap.web.routes.config_exists", return_value=True)
    def test_post_jql(self, mock_exists, mock_fetch):
        mock_fetch.return_value = AggregatedData()
        with patch("jiragit_roadmap.web.routes.load_config", side_effect=FileNotFoundError):
            resp = self.client.post("/", data={"jql": "project = PROJ"})
        assert resp.status_code == 200
        assert mock_fetch.call_args.args == ("project = PROJ",)

    @patch("jiragit_roadmap.web.routes.fetch_roadmap_data")
    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_post_jql_auth_failure(self, mock_exists, mock_fetch):
        mock_fetch.side_effect = JiraAuthError("JIRA authentication failed.")
        resp = self.client.post("/", data={"jql": "project = PROJ"})
        assert resp.status_code == 401

    @patch("jiragit_roadmap.web.routes.fetch_roadmap_data")
    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_post_jql_no_issues_is_a_warning(self, mock_exists, mock_fetch):
        mock_fetch.side_effect = NoIssuesFoundError("No issues found matching your query.")
        resp = self.client.post("/", data={"jql": "project = PROJ"})
        assert resp.status_code == 200
        assert b"No issues found" in resp.data

    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_api_render(self, mock_exists):
        resp = self.client.post("/api/render", json={
            "data": DATA, "options": {"view": "release", "include_dependencies": True},
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["view"] == "release"
        assert body["content"].startswith("<h2>Roadmap</h2>")
        assert "@startuml" in body["content"]

    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_api_render_rejects_bad_body(self, mock_exists):
        resp = self.client.post("/api/render", data="nope", content_type="text/plain")
        assert resp.status_code == 400

    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_api_render_unsupported_view(self, mock_exists):
        resp = self.client.post("/api/render", json={"data": DATA, "options": {"view": "kanban"}})
        assert resp.status_code == 400
        assert "kanban" in resp.get_json()["error"]

    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_demo(self, mock_exists):
        resp = self.client.get("/demo?view=epicgantt")
        assert resp.status_code == 200
        assert b"Platform Modernisation" in resp.data
        assert b"@startuml" in resp.data

    @patch("jiragit_roadmap.web.routes.config_exists", return_value=False)
    def test_api_render_coerces_non_string_options(self, mock_exists):
        resp = self.client.post("/api/render", json={
            "data": DATA, "options": {"timeframe": 6, "view": "timeline"},
        })
        assert resp.status_code == 200
        assert resp.get_json()["view"] == "timeline"

    @patch("jiragit_roadmap.web.routes.load_config", side_effect=ValueError("Invalid configuration: bad view"))
    @patch("jiragit_roadmap.web.routes.config_exists", return_value=True)
    def test_broken_config_is_logged(self, mock_exists, mock_load, caplog):
        with caplog.at_level(logging.WARNING, logger="jiragit_roadmap.web.routes"):
            resp = self.client.get("/")
        assert resp.status_code == 200
        assert "Invalid configuration: bad view" in caplog.text
