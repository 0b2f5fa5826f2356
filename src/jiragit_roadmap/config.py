"""Configuration management for the roadmap."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

import tomli_w

from jiragit_roadmap.grouping import GROUPING_KEYS
from jiragit_roadmap.views import DEFAULT_GROUPING, RENDERERS, TIMELINE_VIEW, RoadmapOptions

# Planning attributes that can be read from Jira custom fields
FIELD_NAMES = (
    "start_date",
    "end_date",
    "theme",
    "initiative",
    "team",
    "epic_link",
    "milestone",
    "quarter",
    "roadmap_status",
    "priority_score",
    "dependencies",
)


@dataclass
class Config:
    """Configuration for JIRA connection and roadmap defaults."""

    jira_url: str = ""
    jira_email: str = ""
    jira_api_token: str = ""
    jira_projects: list[str] = field(default_factory=list)
    timeframe: str = ""
    grouping: str = DEFAULT_GROUPING
    view: str = TIMELINE_VIEW
    include_dependencies: bool = False
    symmetric_dependencies: bool = False
    fields: dict[str, str] = field(default_factory=dict)  # planning attribute -> custom field id

    @property
    def has_jira(self) -> bool:
        return bool(self.jira_url and self.jira_email and self.jira_api_token)

    def validate(self) -> list[str]:
        """Validate configuration values. Returns list of error messages."""
        errors: list[str] = []

        if self.jira_url:
            parsed = urlparse(self.jira_url)
            if parsed.scheme not in ("http", "https"):
                errors.append("JIRA URL must start with http:// or https://")
            if not parsed.netloc:
                errors.append("JIRA URL must include a domain")

        if self.jira_email and "@" not in self.jira_email:
            errors.append("JIRA email must be a valid email address")

        if self.view not in RENDERERS:
            errors.append(f"Roadmap view must be one of: {', '.join(RENDERERS)}")

        if self.grouping not in GROUPING_KEYS:
            errors.append(f"Roadmap grouping must be one of: {', '.join(GROUPING_KEYS)}")

        unknown = sorted(set(self.fields) - set(FIELD_NAMES))
        if unknown:
            errors.append(f"Unknown [fields] entries: {', '.join(unknown)}")

        return errors

    def roadmap_options(self) -> RoadmapOptions:
        """Roadmap options seeded from the configured defaults."""
        return RoadmapOptions(
            timeframe=self.timeframe,
            grouping=self.grouping,
            view=self.view,
            include_dependencies=self.include_dependencies,
            symmetric_dependencies=self.symmetric_dependencies,
        )


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    return Path.home() / ".jiragit-roadmap"


def get_config_path() -> Path:
    """Get the configuration file path."""
    return get_config_dir() / "config.toml"


def config_exists() -> bool:
    """Check if configuration file exists."""
    return get_config_path().exists()


def load_config() -> Config:
    """Load configuration from TOML file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration not found at {config_path}. "
            "Create ~/.jiragit-roadmap/config.toml to set up."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    jira_section = data.get("jira", {})
    roadmap_section = data.get("roadmap", {})

    config = Config(
        jira_url=jira_section.get("url", ""),
        jira_email=jira_section.get("email", ""),
        jira_api_token=jira_section.get("api_token", ""),
        jira_projects=[str(p) for p in jira_section.get("projects", [])],
        timeframe=roadmap_section.get("timeframe", ""),
        grouping=roadmap_section.get("grouping", DEFAULT_GROUPING),
        view=roadmap_section.get("view", TIMELINE_VIEW),
        include_dependencies=bool(roadmap_section.get("include_dependencies", False)),
        symmetric_dependencies=bool(roadmap_section.get("symmetric_dependencies", False)),
        fields={k: str(v) for k, v in data.get("fields", {}).items()},
    )

    errors = config.validate()
    if errors:
        raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    return config


def save_config(config: Config) -> None:
    """Save configuration to TOML file."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    config_path = get_config_path()

    data: dict = {
        "roadmap": {
            "grouping": config.grouping,
            "view": config.view,
            "include_dependencies": config.include_dependencies,
            "symmetric_dependencies": config.symmetric_dependencies,
        },
    }
    if config.timeframe:
        data["roadmap"]["timeframe"] = config.timeframe

    if config.jira_url or config.jira_email or config.jira_api_token:
        data["jira"] = {
            "url": config.jira_url,
            "email": config.jira_email,
            "api_token": config.jira_api_token,
        }
        if config.jira_projects:
            data["jira"]["projects"] = list(config.jira_projects)

    if config.fields:
        data["fields"] = dict(config.fields)

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
