"""HTTP route handlers for the roadmap web interface."""

import logging
from dataclasses import replace
from datetime import date, timedelta

from flask import Blueprint, jsonify, render_template, request

from jiragit_roadmap.config import config_exists, load_config
from jiragit_roadmap.exceptions import (
    ConfigNotFoundError,
    InvalidConfigError,
    InvalidInputError,
    InvalidJqlError,
    JiraAuthError,
    JiraConnectionError,
    JiraRateLimitError,
    NoIssuesFoundError,
    RoadmapConfigError,
    RoadmapError,
    UnsupportedViewError,
)
from jiragit_roadmap.loader import aggregated_data_from_dict, load_aggregated_data
from jiragit_roadmap.models import AggregatedData
from jiragit_roadmap.roadmap import fetch_roadmap_data
from jiragit_roadmap.views import RoadmapOptions, render_roadmap

logger = logging.getLogger(__name__)

bp = Blueprint("main", __name__, static_folder="static", template_folder="templates")

_TRUE_VALUES = ("1", "true", "on", "yes")


def _default_options() -> RoadmapOptions:
    """Options from the config file when it is present and valid."""
    if config_exists():
        try:
            return load_config().roadmap_options()
        except (FileNotFoundError, ValueError) as e:
            logger.warning("Ignoring roadmap defaults from config: %s", e)
    return RoadmapOptions()


def _options_from(values, defaults: RoadmapOptions) -> RoadmapOptions:
    def flag(name: str, default: bool) -> bool:
        value = values.get(name)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUE_VALUES

    def text(name: str, default: str) -> str:
        value = values.get(name)
        if value is None or value == "":
            return default
        return str(value).strip()

    return RoadmapOptions(
        timeframe=text("timeframe", defaults.timeframe),
        grouping=text("grouping", defaults.grouping),
        view=text("view", defaults.view),
        include_dependencies=flag("include_dependencies", defaults.include_dependencies),
        symmetric_dependencies=flag("symmetric_dependencies", defaults.symmetric_dependencies),
    )


@bp.route("/health")
def health():
    """Health check endpoint."""
    config_loaded = config_exists()
    if config_loaded:
        return jsonify({"status": "ok", "config_loaded": True})
    else:
        return jsonify({
            "status": "ok",
            "config_loaded": False,
            "message": "Configuration not found; JIRA queries are disabled",
        })


@bp.route("/")
def index():
    """Render the roadmap form."""
    return render_template(
        "index.html", has_config=config_exists(), options=_default_options(),
    )


@bp.route("/", methods=["POST"])
def roadmap_post():
    """Build the roadmap from a JQL query and/or pasted issue data."""
    jql = request.form.get("jql", "").strip()
    data_text = request.form.get("data", "").strip()
    # An unchecked checkbox is absent from the form
    options = _options_from(request.form, replace(
        _default_options(), include_dependencies=False, symmetric_dependencies=False,
    ))

    def page(status_code=200, **kwargs):
        return render_template(
            "index.html",
            has_config=config_exists(),
            options=options,
            jql=jql,
            data=data_text,
            **kwargs,
        ), status_code

    if not jql and not data_text:
        return page(400, error="Provide a JQL query or aggregated issue data.")

    try:
        data = load_aggregated_data(data_text) if data_text else AggregatedData()
        if jql:
            data = fetch_roadmap_data(jql, base=data)
        content = render_roadmap(data, options)
    except (InvalidInputError, UnsupportedViewError, InvalidJqlError) as e:
        return page(400, error=str(e))
    except (ConfigNotFoundError, InvalidConfigError, RoadmapConfigError) as e:
        return page(503, error=str(e))
    except JiraAuthError as e:
        return page(401, error=str(e))
    except JiraRateLimitError as e:
        return page(429, error=str(e))
    except JiraConnectionError as e:
        return page(503, error=str(e))
    except NoIssuesFoundError as e:
        return page(200, warning=str(e))
    except RoadmapError as e:
        return page(500, error=str(e))

    return page(200, content=content)


@bp.route("/api/render", methods=["POST"])
def api_render():
    """Render roadmap markup from a JSON body {"data": {...}, "options": {...}}."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    options = _options_from(body.get("options") or {}, _default_options())
    try:
        data = aggregated_data_from_dict(body.get("data") or {})
        content = render_roadmap(data, options)
    except (InvalidInputError, UnsupportedViewError) as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"content": content, "view": options.view})


@bp.route("/demo")
def demo():
    """Render the roadmap with built-in demo data (no JIRA credentials needed)."""
    today = date.today()

    def d(offset_days):
        return (today + timedelta(days=offset_days)).isoformat()

    payload = {
        "jiraIssues": [
            {"key": "EPIC-1", "issueType": "Epic", "summary": "Platform Modernisation",
             "status": "In Progress", "url": "#", "createdDate": d(-60), "updatedDate": d(-2),
             "theme": "Platform", "initiative": "Modernisation", "team": "Core",
             "plannedStartDate": d(-45), "plannedEndDate": d(180)},
            {"key": "DEMO-1", "issueType": "Story", "summary": "API Gateway migration",
             "status": "In Progress", "url": "#", "createdDate": d(-50), "updatedDate": d(-1),
             "assignee": "Alex", "epicLink": "EPIC-1", "team": "Core",
             "theme": "Platform", "initiative": "Modernisation", "milestone": "v2.0",
             "plannedStartDate": d(-45), "plannedEndDate": d(45)},
            {"key": "DEMO-2", "issueType": "Story", "summary": "Service mesh rollout",
             "status": "Blocked", "url": "#", "createdDate": d(-30), "updatedDate": d(-3),
             "assignee": "Sam", "epicLink": "EPIC-1", "team": "Core",
             "theme": "Platform", "initiative": "Modernisation", "milestone": "v2.0",
             "dependencies": ["DEMO-1"],
             "plannedStartDate": d(30), "plannedEndDate": d(120)},
            {"key": "DEMO-3", "issueType": "Task", "summary": "Legacy data extraction",
             "status": "Done", "url": "#", "createdDate": d(-150), "updatedDate": d(-80),
             "assignee": "Robin", "team": "Data", "theme": "Migration",
             "initiative": "Legacy exit", "milestone": "v1.9",
             "plannedStartDate": d(-150), "plannedEndDate": d(-80)},
            {"key": "DEMO-4", "issueType": "Story", "summary": "Dashboard UI",
             "status": "To Do", "url": "#", "createdDate": d(-5), "updatedDate": d(-5),
             "team": "Insights", "theme": "Analytics", "initiative": "Dashboards",
             "roadmapStatus": "At Risk", "dependencies": ["DEMO-2"],
             "plannedStartDate": d(150), "plannedEndDate": d(270)},
        ],
        "githubIssues": [
            {"title": "EPIC-1: retire the old load balancer", "number": 42, "state": "open",
             "url": "#", "repository": "demo/platform", "createdDate": d(-10),
             "updatedDate": d(-1), "labels": ["infrastructure"], "assignees": ["kim"]},
            {"title": "Flaky export job", "number": 7, "state": "closed", "url": "#",
             "repository": "demo/analytics", "createdDate": d(-40), "updatedDate": d(-20),
             "labels": ["bug"], "assignees": []},
        ],
        "githubPRs": [],
    }

    options = _options_from(request.args, RoadmapOptions(include_dependencies=True))
    try:
        content = render_roadmap(aggregated_data_from_dict(payload), options)
    except UnsupportedViewError as e:
        return render_template(
            "index.html", has_config=config_exists(), options=options, error=str(e),
        ), 400

    return render_template(
        "index.html",
        has_config=config_exists(),
        options=options,
        content=content,
    )
