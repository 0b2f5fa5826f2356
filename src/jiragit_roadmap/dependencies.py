"""Dependency graph between roadmap items."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from markupsafe import escape

from jiragit_roadmap.models import PlanningItem

_ALIAS_RE = re.compile(r"\W")


@dataclass(frozen=True)
class DependencyNode:
    node_id: str
    label: str


@dataclass(frozen=True)
class DependencyGraph:
    nodes: tuple[DependencyNode, ...]
    edges: tuple[tuple[str, str], ...]  # (item, depends on)


def extract_dependencies(
    items: Iterable[PlanningItem], symmetric: bool = False
) -> DependencyGraph:
    """Build the dependency graph for items that declare dependencies.

    Every item with dependencies becomes a node. Edges are emitted for Jira
    items only unless ``symmetric`` is set, in which case GitHub items get
    edges too. References are not checked against the data set.
    """
    nodes: list[DependencyNode] = []
    edges: list[tuple[str, str]] = []
    github_index = 0

    for item in items:
        if item.jira_issue is not None:
            node_id = item.jira_issue.key
            label = f"{item.jira_issue.key}\\n{item.title}"
            emits_edges = True
        else:
            node_id = f"GH_ISSUE_{github_index}"
            github_index += 1
            label = f"{item.github_issue.repository} #{item.github_issue.number}\\n{item.title}"
            emits_edges = symmetric

        if not item.dependencies:
            continue
        nodes.append(DependencyNode(node_id=node_id, label=label))
        if emits_edges:
            edges.extend((node_id, dep) for dep in item.dependencies)

    return DependencyGraph(nodes=tuple(nodes), edges=tuple(edges))


def plantuml_alias(reference: str) -> str:
    return _ALIAS_RE.sub("_", reference)


def render_plantuml(graph: DependencyGraph) -> str:
    """Render the graph as a PlantUML diagram."""
    lines = [
        "@startuml",
        "skinparam monochrome true",
        "skinparam shadowing false",
        "skinparam defaultFontName Arial",
        "skinparam defaultFontSize 12",
    ]
    for node in graph.nodes:
        label = escape(node.label)
        lines.append(f'rectangle "{label}" as {plantuml_alias(node.node_id)}')
    for source, target in graph.edges:
        lines.append(f"{plantuml_alias(source)} --> {plantuml_alias(target)}")
    lines.append("@enduml")
    return "\n".join(lines) + "\n"
