"""Exception hierarchy for the roadmap."""


class RoadmapError(Exception):
    """Base exception for roadmap errors."""

    pass


class UnsupportedViewError(RoadmapError):
    """Requested roadmap view does not exist."""

    pass


class InvalidInputError(RoadmapError):
    """Aggregated issue data could not be parsed."""

    pass


class ConfigNotFoundError(RoadmapError):
    """Configuration file not found."""

    pass


class InvalidConfigError(RoadmapError):
    """Configuration is invalid."""

    pass


class RoadmapConfigError(RoadmapError):
    """JIRA connection settings are missing from the configuration."""

    pass


class JiraAuthError(RoadmapError):
    """JIRA authentication failed."""

    pass


class JiraConnectionError(RoadmapError):
    """Cannot connect to JIRA server."""

    pass


class JiraRateLimitError(RoadmapError):
    """JIRA rate limit exceeded."""

    pass


class InvalidJqlError(RoadmapError):
    """Invalid JQL query."""

    pass


class NoIssuesFoundError(RoadmapError):
    """No issues found matching query."""

    pass
