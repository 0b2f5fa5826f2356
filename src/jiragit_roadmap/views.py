"""Roadmap views rendered as Confluence storage-format markup."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime

from markupsafe import escape

from jiragit_roadmap.dependencies import extract_dependencies, render_plantuml
from jiragit_roadmap.exceptions import UnsupportedViewError
from jiragit_roadmap.grouping import (
    extract_milestones,
    extract_themes,
    group_by_epic,
    group_items,
)
from jiragit_roadmap.models import AggregatedData, Metadata, PlanningItem
from jiragit_roadmap.normalize import normalize_items
from jiragit_roadmap.placement import (
    MARKER_END,
    MARKER_MIDDLE,
    MARKER_SINGLE,
    MARKER_START,
    place_item,
    quarter_cells,
)
from jiragit_roadmap.status import (
    CANONICAL_STATUSES,
    count_statuses,
    status_color,
    status_text_color,
)
from jiragit_roadmap.timeframe import quarter_axis, resolve_timeframe

logger = logging.getLogger(__name__)

TIMELINE_VIEW = "timeline"
STRATEGIC_VIEW = "strategic"
RELEASE_VIEW = "release"
EPIC_GANTT_VIEW = "epicgantt"

DEFAULT_GROUPING = "theme"

_TIMESTAMP_FORMAT = "%a, %d %b %Y %H:%M:%S"

_BORDER = "border: 1px solid #ddd;"
_TH = (
    '<th class="confluenceTh" style="padding: 10px; text-align: {align}; {border} '
    'background-color: #f2f2f2;{extra}">{text}</th>\n'
)
_EMPTY_CELL = f'<td class="confluenceTd" style="{_BORDER} padding: 10px;"></td>\n'

_MARKER_GLYPHS = {
    MARKER_SINGLE: "●",
    MARKER_START: "▶",
    MARKER_MIDDLE: "━",
    MARKER_END: "◀",
}


@dataclass
class RoadmapOptions:
    """Caller-supplied rendering parameters."""

    timeframe: str = ""  # e.g. "Q1-Q4 2025", "6months", "1year"
    grouping: str = DEFAULT_GROUPING  # epic | theme | team | quarter
    view: str = TIMELINE_VIEW
    include_dependencies: bool = False
    symmetric_dependencies: bool = False
    version_label: str = ""  # overrides the label carried in the data
    include_metadata: bool = False


def _header_row(first_column: str, axis: Sequence[str]) -> str:
    cells = [_TH.format(align="left", border=_BORDER, extra=" width: 25%;", text=first_column)]
    cells.extend(
        _TH.format(align="center", border=_BORDER, extra="", text=escape(quarter))
        for quarter in axis
    )
    return "<thead>\n<tr>\n" + "".join(cells) + "</tr>\n</thead>\n"


def _status_badge(status: str) -> str:
    return (
        '<span style="display: inline-block; padding: 3px 8px; border-radius: 3px; '
        f"background-color:{status_color(status)}; color:{status_text_color(status)}; "
        f'font-size: 12px; margin-right: 5px;">{escape(status)}</span>\n'
    )


def _item_label(item: PlanningItem) -> str:
    if item.jira_issue is not None:
        return f"{escape(item.jira_issue.key)}"
    return f"{escape(item.github_issue.repository)} #{item.github_issue.number}"


def _item_cell(item: PlanningItem) -> str:
    if item.jira_issue is not None:
        people = f"Assignee: {escape(item.jira_issue.assignee)}"
    else:
        people = f"Assignees: {escape(', '.join(item.github_issue.assignees))}"
    return (
        f'<td class="confluenceTd" style="vertical-align:top; padding: 10px; {_BORDER}">\n'
        f'<strong><a href="{escape(item.url)}" style="text-decoration: none;">'
        f"{_item_label(item)}</a></strong>: {escape(item.title)}<br/>\n"
        '<div style="margin-top: 5px;">\n'
        f"{_status_badge(item.status)}"
        f"<small>{people}</small>\n"
        "</div>\n"
        "</td>\n"
    )


def _span_cell(marker: str | None, status: str) -> str:
    if marker is None:
        return _EMPTY_CELL
    color = status_color(status)
    if marker == MARKER_SINGLE:
        border = f"{_BORDER} border-radius: 4px;"
    elif marker == MARKER_START:
        border = (
            f"{_BORDER} border-left: 3px solid {color}; "
            f"border-top: 1px solid {color}; border-bottom: 1px solid {color};"
        )
    elif marker == MARKER_END:
        border = (
            f"{_BORDER} border-right: 3px solid {color}; "
            f"border-top: 1px solid {color}; border-bottom: 1px solid {color};"
        )
    else:
        border = f"{_BORDER} border-top: 1px solid {color}; border-bottom: 1px solid {color};"
    return (
        f'<td class="confluenceTd" style="text-align: center; padding: 10px; '
        f'background-color:{color}; color:{status_text_color(status)}; {border}">'
        f'<span style="font-weight: bold;">{_MARKER_GLYPHS[marker]}</span></td>\n'
    )


def _item_row(item: PlanningItem, axis: Sequence[str]) -> str:
    start_index, end_index = place_item(item, axis)
    cells = "".join(
        _span_cell(marker, item.status)
        for marker in quarter_cells(start_index, end_index, len(axis))
    )
    return "<tr>\n" + _item_cell(item) + cells + "</tr>\n"


def _group_header_row(label: str, axis: Sequence[str]) -> str:
    return (
        f'<tr>\n<td class="confluenceTd" colspan="{len(axis) + 1}" style="padding: 10px; '
        f'background-color:#e9f0f7; font-weight:bold; {_BORDER} border-bottom: 2px solid #4a6785;">'
        f"{escape(label)}</td>\n</tr>\n"
    )


def _status_summary(items: Sequence[PlanningItem]) -> str:
    rows = "".join(
        f'<tr>\n<td class="confluenceTd" style="padding: 8px; {_BORDER} '
        f"background-color:{status_color(status)}; color:{status_text_color(status)}; "
        f'font-weight:bold;">{escape(status)}</td>\n'
        f'<td class="confluenceTd" style="padding: 8px; {_BORDER} text-align: center;">'
        f"{count}</td>\n</tr>\n"
        for status, count in count_statuses(item.status for item in items)
    )
    return (
        '<div style="margin-bottom: 20px;">\n<h4>Status Summary</h4>\n'
        '<table class="confluenceTable" style="width: 50%; border-collapse: collapse; '
        'margin-bottom: 15px;">\n'
        "<thead>\n<tr>\n"
        + _TH.format(align="left", border=_BORDER, extra="", text="Status")
        + _TH.format(align="center", border=_BORDER, extra="", text="Count")
        + "</tr>\n</thead>\n<tbody>\n"
        + rows
        + "</tbody>\n</table>\n</div>\n"
    )


def _symbol_legend() -> str:
    statuses = "".join(
        f'<td style="padding: 5px 10px; background-color:{status_color(status)}; '
        f'color:{status_text_color(status)}; border-radius: 3px; font-size: 12px;">{status}</td>\n'
        '<td style="padding-right: 15px;"></td>\n'
        for status in CANONICAL_STATUSES
    )
    symbols = "".join(
        f'<td style="padding: 5px 10px; font-weight: bold;">{_MARKER_GLYPHS[marker]}</td>\n'
        f'<td style="padding-right: 15px;">{text}</td>\n'
        for marker, text in (
            (MARKER_SINGLE, "Single quarter item"),
            (MARKER_START, "Start of multi-quarter item"),
            (MARKER_MIDDLE, "Middle of timeline"),
            (MARKER_END, "End of multi-quarter item"),
        )
    )
    table = '<table style="width: auto; border-collapse: collapse; margin-bottom: 15px;">\n'
    return (
        '<div style="margin-top: 20px; margin-bottom: 20px;">\n<h4>Legend</h4>\n'
        f"{table}<tr>\n{statuses}</tr>\n</table>\n"
        f"{table}<tr>\n{symbols}</tr>\n</table>\n"
        "</div>\n"
    )


def _grid_table(first_column: str, axis: Sequence[str], body: str) -> str:
    return (
        '<table class="confluenceTable" style="width: 100%; border-collapse: collapse; '
        'margin-top: 20px;">\n'
        + _header_row(first_column, axis)
        + "<tbody>\n"
        + body
        + "</tbody>\n</table>\n"
    )


def render_timeline(
    items: Sequence[PlanningItem], axis: Sequence[str], options: RoadmapOptions
) -> str:
    """One table row per item, grouped by the selected key."""
    groups = group_items(items, options.grouping or DEFAULT_GROUPING)
    body = "".join(
        _group_header_row(group.label, axis) + "".join(_item_row(item, axis) for item in group.items)
        for group in groups
    )
    return (
        "<h3>Timeline View</h3>\n"
        "<p>This view shows work items arranged by their planned start and end dates.</p>\n"
        + _status_summary(items)
        + _grid_table("Item", axis, body)
        + _symbol_legend()
    )


def render_strategic(
    items: Sequence[PlanningItem], axis: Sequence[str], options: RoadmapOptions
) -> str:
    """Themes and their initiatives across the quarter axis."""
    rows = []
    for theme in extract_themes(items, axis):
        rows.append(
            f'<tr>\n<td class="confluenceTd" colspan="{len(axis) + 1}" '
            f'style="background-color:#f4f5f7; font-weight:bold;">{escape(theme.name)}</td>\n</tr>\n'
        )
        for initiative in theme.initiatives:
            cells = "".join(
                f'<td class="confluenceTd" style="background-color:{status_color(initiative.status)};">•</td>\n'
                if marker else '<td class="confluenceTd"></td>\n'
                for marker in quarter_cells(initiative.start_quarter, initiative.end_quarter, len(axis))
            )
            rows.append(
                f'<tr>\n<td class="confluenceTd">{escape(initiative.name)}</td>\n{cells}</tr>\n'
            )

    header = "".join(f'<th class="confluenceTh">{escape(q)}</th>\n' for q in axis)
    return (
        "<h3>Strategic View</h3>\n"
        "<p>This view shows work items grouped by strategic themes and initiatives.</p>\n"
        '<table class="confluenceTable">\n<thead>\n<tr>\n'
        '<th class="confluenceTh">Theme/Initiative</th>\n'
        f"{header}</tr>\n</thead>\n<tbody>\n"
        + "".join(rows)
        + "</tbody>\n</table>\n"
    )


def render_release(
    items: Sequence[PlanningItem], axis: Sequence[str], options: RoadmapOptions
) -> str:
    """Flat table of milestones with target dates and deliverables."""
    rows = []
    for milestone in extract_milestones(items):
        deliverables = "".join(
            f'<li><a href="{escape(item.url)}">{_item_label(item)}</a>: {escape(item.title)}</li>\n'
            for item in milestone.items
        )
        rows.append(
            "<tr>\n"
            f'<td class="confluenceTd">{escape(milestone.name)}</td>\n'
            f'<td class="confluenceTd">{milestone.target_date.strftime("%b %Y")}</td>\n'
            f'<td class="confluenceTd" style="background-color:{status_color(milestone.status)}; '
            f'color:white;">{escape(milestone.status)}</td>\n'
            f'<td class="confluenceTd">\n<ul>\n{deliverables}</ul>\n</td>\n'
            "</tr>\n"
        )

    timeframe = f"<p><em>Timeframe: {escape(options.timeframe)}</em></p>\n" if options.timeframe else ""
    return (
        f"{timeframe}<h3>Release View</h3>\n"
        "<p>This view shows work items organized by planned releases or milestones.</p>\n"
        '<table class="confluenceTable">\n<thead>\n<tr>\n'
        '<th class="confluenceTh">Release/Milestone</th>\n'
        '<th class="confluenceTh">Target Date</th>\n'
        '<th class="confluenceTh">Status</th>\n'
        '<th class="confluenceTh">Key Deliverables</th>\n'
        "</tr>\n</thead>\n<tbody>\n"
        + "".join(rows)
        + "</tbody>\n</table>\n"
    )


def render_epic_gantt(
    items: Sequence[PlanningItem], axis: Sequence[str], options: RoadmapOptions
) -> str:
    """Gantt rows organized under Jira epics."""
    header_cell = (
        f'<td class="confluenceTd" style="padding: 10px; {_BORDER} background-color:#e9f0f7;"></td>\n'
    )
    body = []
    for group in group_by_epic(items):
        body.append(
            f'<tr>\n<td class="confluenceTd" style="padding: 10px; background-color:#e9f0f7; '
            f'font-weight:bold; {_BORDER} border-bottom: 2px solid #4a6785;">{escape(group.name)}</td>\n'
            + header_cell * len(axis)
            + "</tr>\n"
        )
        body.extend(_item_row(item, axis) for item in group.items)

    return (
        "<h3>Epic Roadmap</h3>\n"
        "<p>This view shows work items organized by epics across time periods.</p>\n"
        + _grid_table("Epic", axis, "".join(body))
        + _symbol_legend()
    )


def render_dependencies(items: Sequence[PlanningItem], symmetric: bool = False) -> str:
    """PlantUML macro with the dependency diagram."""
    diagram = render_plantuml(extract_dependencies(items, symmetric=symmetric))
    return (
        "<h3>Dependencies</h3>\n"
        "<p>This diagram shows dependencies between work items.</p>\n"
        '<ac:structured-macro ac:name="plantuml">\n'
        '<ac:parameter ac:name="atlassian-macro-output-type">BLOCK</ac:parameter>\n'
        f"<ac:plain-text-body><![CDATA[\n{diagram}]]></ac:plain-text-body>\n"
        "</ac:structured-macro>\n"
    )


def _legend_panel() -> str:
    entries = "".join(
        '<li><span style="display:inline-block; width:20px; height:10px; '
        f'background-color:{status_color(status)}; margin-right:5px;"></span>{status}</li>\n'
        for status in CANONICAL_STATUSES
    )
    return (
        '<ac:structured-macro ac:name="info">\n<ac:rich-text-body>\n'
        f"<p><strong>Legend</strong></p>\n<ul>\n{entries}</ul>\n"
        "<p><small>This roadmap shows planned work items with their expected timeframes.</small></p>\n"
        "</ac:rich-text-body>\n</ac:structured-macro>\n"
    )


Renderer = Callable[[Sequence[PlanningItem], Sequence[str], RoadmapOptions], str]

RENDERERS: dict[str, Renderer] = {
    TIMELINE_VIEW: render_timeline,
    STRATEGIC_VIEW: render_strategic,
    RELEASE_VIEW: render_release,
    EPIC_GANTT_VIEW: render_epic_gantt,
}


def render_roadmap(
    data: AggregatedData, options: RoadmapOptions | None = None, today: date | None = None
) -> str:
    """Render the roadmap section for the aggregated issues.

    Raises:
        UnsupportedViewError: If ``options.view`` is not a known view
    """
    options = options or RoadmapOptions()
    renderer = RENDERERS.get(options.view)
    if renderer is None:
        raise UnsupportedViewError(
            f"Unsupported roadmap view: {options.view!r}. "
            f"Choose one of: {', '.join(RENDERERS)}."
        )

    timeframe = resolve_timeframe(options.timeframe, today=today)
    axis = quarter_axis(timeframe)
    items = normalize_items(data)
    logger.info(
        "Rendering %s roadmap: %d items across %d quarters (%s)",
        options.view, len(items), len(axis), ", ".join(axis),
    )

    parts = [
        "<h2>Roadmap</h2>\n",
        "<p>This roadmap shows planned work for the period "
        f"<strong>{timeframe.start.strftime('%B %Y')}</strong> to "
        f"<strong>{timeframe.end.strftime('%B %Y')}</strong>.</p>\n",
        renderer(items, axis, options),
    ]
    if options.include_dependencies:
        parts.append(render_dependencies(items, symmetric=options.symmetric_dependencies))
    parts.append(_legend_panel())
    return "".join(parts)


def _metadata_footer(metadata: Metadata) -> str:
    def row(name: str, value: str) -> str:
        return f'<tr><td class="confluenceTd">{name}</td><td class="confluenceTd">{escape(value)}</td></tr>\n'

    fetch_time = metadata.fetch_time.strftime(_TIMESTAMP_FORMAT) if metadata.fetch_time else ""
    rows = [
        row("Fetch Time", fetch_time),
        row("Jira Projects", ", ".join(metadata.jira_projects)),
        row("GitHub Repositories", ", ".join(metadata.github_repos)),
    ]
    if metadata.jira_jql:
        rows.append(row("Jira JQL", metadata.jira_jql))
    if metadata.github_labels:
        rows.append(row("GitHub Labels", ", ".join(metadata.github_labels)))

    header = "".join(
        f'<th class="confluenceTh" style="background-color:#f4f5f7;text-align:center">{name}</th>'
        for name in ("Property", "Value")
    )
    return (
        "<h2>Metadata</h2>\n"
        '<ac:structured-macro ac:name="expand">\n'
        '<ac:parameter ac:name="title">Click to view metadata</ac:parameter>\n'
        "<ac:rich-text-body>\n"
        f'<table class="confluenceTable">\n<tr>{header}</tr>\n'
        + "".join(rows)
        + "</table>\n</ac:rich-text-body>\n</ac:structured-macro>\n"
        '<hr style="border-top: 1px solid #ddd; margin: 20px 0;" />\n'
        "<p><em>Generated by jiragit-roadmap</em></p>\n"
    )


def render_page(
    data: AggregatedData,
    options: RoadmapOptions | None = None,
    today: date | None = None,
    generated_at: datetime | None = None,
) -> str:
    """Full page: title, version, generation time, source counts and the roadmap.

    The metadata footer is appended when ``options.include_metadata`` is set.
    """
    options = options or RoadmapOptions()
    roadmap = render_roadmap(data, options, today=today)
    generated_at = generated_at or datetime.now()
    version_label = options.version_label or data.metadata.version_label
    version = (
        f"<p><strong>Version:</strong> {escape(version_label)}</p>\n" if version_label else ""
    )
    page = (
        "<h1>Project Roadmap</h1>\n\n"
        f"{version}"
        f"<p><strong>Generated:</strong> {generated_at.strftime(_TIMESTAMP_FORMAT)}</p>\n\n"
        '<ac:structured-macro ac:name="info">\n<ac:rich-text-body>\n'
        "<p><strong>Summary</strong></p>\n<ul>\n"
        f"<li>Jira Issues: {len(data.jira_issues)}</li>\n"
        f"<li>GitHub Issues: {len(data.github_issues)}</li>\n"
        f"<li>GitHub Pull Requests: {len(data.github_prs)}</li>\n"
        "</ul>\n</ac:rich-text-body>\n</ac:structured-macro>\n\n"
        + roadmap
    )
    if options.include_metadata:
        page += _metadata_footer(data.metadata)
    return page
