"""Data models for the JIRA/GitHub roadmap."""

from dataclasses import dataclass, field
from datetime import date, datetime

SOURCE_JIRA = "jira"
SOURCE_GITHUB = "github-issue"


@dataclass(frozen=True)
class JiraIssue:
    """A ticket as produced by the Jira fetcher."""

    key: str
    issue_type: str
    summary: str
    status: str
    url: str
    created_date: date
    updated_date: date
    priority: str = ""
    assignee: str = ""
    reporter: str = ""
    team: str = ""
    labels: tuple[str, ...] = ()
    epic_link: str = ""
    description: str = ""
    fix_versions: tuple[str, ...] = ()
    # Roadmap planning fields
    planned_start_date: date | None = None
    planned_end_date: date | None = None
    theme: str = ""
    initiative: str = ""
    dependencies: tuple[str, ...] = ()
    priority_score: int = 0  # 1-100
    roadmap_status: str = ""
    milestone: str = ""
    quarter: str = ""  # e.g. "Q1 2025"


@dataclass(frozen=True)
class GitHubIssue:
    """An issue from a GitHub repository."""

    title: str
    number: int
    state: str  # "open" | "closed"
    url: str
    repository: str
    created_date: date
    updated_date: date
    labels: tuple[str, ...] = ()
    assignees: tuple[str, ...] = ()
    # Roadmap planning fields
    planned_start_date: date | None = None
    planned_end_date: date | None = None
    theme: str = ""
    initiative: str = ""
    dependencies: tuple[str, ...] = ()
    priority_score: int = 0
    roadmap_status: str = ""
    milestone: str = ""
    quarter: str = ""


@dataclass(frozen=True)
class GitHubPR:
    """A pull request. Counted in the page header, never placed on the roadmap."""

    title: str
    number: int
    state: str
    url: str
    repository: str
    is_draft: bool = False


@dataclass(frozen=True)
class Metadata:
    """How and when the aggregated data was collected."""

    fetch_time: datetime | None = None
    jira_projects: tuple[str, ...] = ()
    github_repos: tuple[str, ...] = ()
    jira_jql: str = ""
    github_labels: tuple[str, ...] = ()
    version_label: str = ""


@dataclass
class AggregatedData:
    """Combined output of the Jira and GitHub fetchers."""

    jira_issues: list[JiraIssue] = field(default_factory=list)
    github_issues: list[GitHubIssue] = field(default_factory=list)
    github_prs: list[GitHubPR] = field(default_factory=list)
    metadata: Metadata = field(default_factory=Metadata)


@dataclass(frozen=True)
class DateRange:
    """A start/end pair. Inversion is reported, not repaired."""

    start: date
    end: date

    @property
    def inverted(self) -> bool:
        return self.start > self.end


@dataclass(frozen=True)
class PlanningItem:
    """A single issue normalized for roadmap planning."""

    kind: str  # SOURCE_JIRA | SOURCE_GITHUB
    status: str
    dates: DateRange
    jira_issue: JiraIssue | None = None
    github_issue: GitHubIssue | None = None
    dependencies: tuple[str, ...] = ()

    @property
    def start_date(self) -> date:
        return self.dates.start

    @property
    def end_date(self) -> date:
        return self.dates.end

    @property
    def source(self) -> JiraIssue | GitHubIssue:
        if self.jira_issue is not None:
            return self.jira_issue
        return self.github_issue

    @property
    def key(self) -> str:
        if self.jira_issue is not None:
            return self.jira_issue.key
        return f"{self.github_issue.repository}#{self.github_issue.number}"

    @property
    def title(self) -> str:
        if self.jira_issue is not None:
            return self.jira_issue.summary
        return self.github_issue.title

    @property
    def url(self) -> str:
        return self.source.url

    @property
    def assignees(self) -> tuple[str, ...]:
        if self.jira_issue is not None:
            return (self.jira_issue.assignee,) if self.jira_issue.assignee else ()
        return self.github_issue.assignees


@dataclass(frozen=True)
class Group:
    """A labelled bucket of planning items, in input order."""

    label: str
    items: tuple[PlanningItem, ...]


@dataclass(frozen=True)
class Milestone:
    """A release or milestone on the roadmap."""

    name: str
    target_date: date
    status: str
    items: tuple[PlanningItem, ...]


@dataclass(frozen=True)
class Initiative:
    """A strategic initiative spanning a range of quarter indices."""

    name: str
    status: str
    start_quarter: int
    end_quarter: int
    items: tuple[PlanningItem, ...] = ()


@dataclass(frozen=True)
class Theme:
    """A strategic theme with its initiatives."""

    name: str
    initiatives: tuple[Initiative, ...]


@dataclass(frozen=True)
class EpicGroup:
    """An epic header row and the items associated with it."""

    key: str
    name: str
    items: tuple[PlanningItem, ...]
