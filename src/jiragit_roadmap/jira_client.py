"""JIRA API client with retry logic."""

import logging
import re

from jira import JIRA, JIRAError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from jiragit_roadmap.config import Config

logger = logging.getLogger(__name__)

# Upper bound on issues pulled by one search
MAX_ISSUES = 5000

_ORDER_BY = re.compile(r"\border\s+by\b", re.IGNORECASE)

STANDARD_FIELDS = [
    "summary",
    "issuetype",
    "status",
    "priority",
    "assignee",
    "reporter",
    "labels",
    "parent",
    "fixVersions",
    "issuelinks",
    "created",
    "updated",
    "description",
]


class RateLimitError(Exception):
    """Raised when JIRA API rate limit is hit."""

    pass


class AuthenticationError(Exception):
    """Raised when JIRA authentication fails."""

    pass


class ConnectionError(Exception):
    """Raised when JIRA server cannot be reached."""

    pass


class JiraClient:
    """Client for interacting with JIRA Cloud API."""

    def __init__(self, config: Config) -> None:
        """Initialize JIRA client with configuration."""
        self.config = config
        self._client: JIRA | None = None

    def _get_client(self) -> JIRA:
        """Get or create JIRA client instance."""
        if self._client is None:
            try:
                self._client = JIRA(
                    server=self.config.jira_url,
                    basic_auth=(self.config.jira_email, self.config.jira_api_token),
                    timeout=15,
                )
            except JIRAError as e:
                if e.status_code == 401:
                    raise AuthenticationError(
                        "Authentication failed. Check your email and API token."
                    ) from e
                raise
            except Exception as e:
                error_msg = str(e).lower()
                if "connection" in error_msg or "resolve" in error_msg or "timeout" in error_msg:
                    raise ConnectionError(
                        f"Cannot connect to JIRA server at {self.config.jira_url}. "
                        "Check the URL and your network connection."
                    ) from e
                raise
        return self._client

    @retry(
        retry=retry_if_exception_type(RateLimitError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=60),
        reraise=True,
    )
    def search_issues(self, jql: str, extra_fields: list[str] | None = None) -> list[dict]:
        """Search for issues to place on the roadmap.

        Args:
            jql: JQL query string
            extra_fields: Custom field IDs holding planning attributes

        Returns:
            List of raw issue dicts

        Raises:
            RateLimitError: If rate limited (will be retried)
            AuthenticationError: If authentication fails
            ValueError: If the JQL is rejected
        """
        client = self._get_client()

        try:
            fields = list(STANDARD_FIELDS)
            if extra_fields:
                fields.extend(f for f in extra_fields if f not in fields)

            logger.debug("Searching JIRA: %s (%d fields)", jql, len(fields))
            result = client.enhanced_search_issues(
                jql,
                maxResults=MAX_ISSUES,
                fields=fields,
            )
            if len(result) >= MAX_ISSUES:
                logger.warning(
                    "JIRA search hit the %d issue limit; narrow the query to see everything",
                    MAX_ISSUES,
                )

            return [self._issue_to_dict(issue) for issue in result]

        except JIRAError as e:
            if e.status_code == 429:
                raise RateLimitError(
                    "Rate limited by JIRA. Retrying with exponential backoff..."
                ) from e
            if e.status_code == 401:
                raise AuthenticationError(
                    "Authentication failed. Check your email and API token."
                ) from e
            if e.status_code == 400:
                raise ValueError(f"Invalid JQL query: {e.text}") from e
            raise

    def _issue_to_dict(self, issue) -> dict:
        """Convert JIRA issue object to dictionary."""
        return {
            "key": issue.key,
            "fields": issue.raw.get("fields", {}),
        }


def build_jql(projects: list[str], jql: str) -> str:
    """Restrict a JQL query to the configured projects.

    Examples:
        >>> build_jql(["PROJ"], "type = Story ORDER BY rank")
        'project = "PROJ" AND (type = Story) ORDER BY rank'
        >>> build_jql(["A", "B"], "")
        'project IN ("A", "B")'
    """
    if not projects:
        return jql
    if len(projects) == 1:
        scope = f'project = "{projects[0]}"'
    else:
        scope = "project IN (" + ", ".join(f'"{p}"' for p in projects) + ")"

    match = _ORDER_BY.search(jql)
    order = jql[match.start():].strip() if match else ""
    condition = (jql[:match.start()] if match else jql).strip()
    query = f"{scope} AND ({condition})" if condition else scope
    return f"{query} {order}" if order else query
