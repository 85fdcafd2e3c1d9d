"""Configuration loading and validation.

Settings come from environment variables (optionally seeded from a ``.env``
file by the CLI) or from a YAML file whose keys mirror the models below.
"""

import os
from collections.abc import Mapping
from datetime import UTC, datetime, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, field_validator

MIN_YEAR = 2000


class ConfigurationError(Exception):
    """Raised when the configuration cannot produce a report."""


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def _as_str(value: Any) -> Any:
    # YAML reads bare numeric ids as int
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, list):
        return [_as_str(item) for item in value]
    return value


class GitLabConfig(BaseModel):
    """GitLab connection and target configuration."""

    token: str = ""
    base_url: str = "https://gitlab.com/api/v4"
    user_id: str = ""
    team_users: list[str] = Field(default_factory=list)
    allowed_projects: list[str] = Field(default_factory=list)

    @field_validator("team_users", "allowed_projects", mode="before")
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        """Accept comma-separated strings."""
        return _as_str(_split_csv(v))

    @field_validator("user_id", mode="before")
    @classmethod
    def numeric_user_id(cls, v: Any) -> Any:
        """Accept numeric ids."""
        return _as_str(v)

    @property
    def is_configured(self) -> bool:
        return bool(self.token and (self.user_id or self.team_users))

    @property
    def is_team(self) -> bool:
        return bool(self.team_users)


class GitHubConfig(BaseModel):
    """GitHub connection and target configuration."""

    token: str = ""
    username: str = ""
    allowed_repos: list[str] = Field(default_factory=list)

    @field_validator("allowed_repos", mode="before")
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        """Accept comma-separated strings."""
        return _as_str(_split_csv(v))

    @field_validator("username", mode="before")
    @classmethod
    def numeric_username(cls, v: Any) -> Any:
        """Accept all-digit logins."""
        return _as_str(v)

    @property
    def is_configured(self) -> bool:
        return bool(self.token and self.username)


class ApiConfig(BaseModel):
    """HTTP request configuration."""

    timeout_ms: int = Field(default=30000, ge=1, description="Request timeout in milliseconds")
    max_retries: int = Field(default=3, ge=0)
    per_page: int = Field(default=100, ge=1, le=100)
    max_pages: int = Field(default=100, ge=1, description="Page cap per paginated endpoint")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class OutputConfig(BaseModel):
    """Report output configuration."""

    filename: str | None = None
    format: str = Field(default="markdown", pattern=r"^(markdown|json)$")


class Config(BaseModel):
    """Root configuration model."""

    gitlab: GitLabConfig = Field(default_factory=GitLabConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    year: int = Field(default_factory=lambda: datetime.now(UTC).year)
    timezone: str | None = None
    api: ApiConfig = Field(default_factory=ApiConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        """Validate that the year is between 2000 and next year."""
        max_year = datetime.now(UTC).year + 1
        if v < MIN_YEAR or v > max_year:
            msg = f"year must be between {MIN_YEAR} and {max_year}, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        """Validate that the timezone is a known IANA name."""
        if not v:
            return None
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            msg = f"Unknown timezone '{v}'"
            raise ValueError(msg) from e
        return v

    @property
    def tzinfo(self) -> tzinfo | None:
        """Timezone for wall-clock analytics; None means process-local."""
        return ZoneInfo(self.timezone) if self.timezone else None

    def validate_platforms(self) -> None:
        """Ensure at least one platform can be queried.

        Raises:
            ConfigurationError: If neither GitLab nor GitHub is configured.
        """
        if self.gitlab.is_configured or self.github.is_configured:
            return

        raise ConfigurationError(
            "At least one platform must be configured:\n"
            "  - GitLab: GITLAB_TOKEN and either GITLAB_USER_ID or GITLAB_TEAM_USERS\n"
            "  - GitHub: GITHUB_TOKEN and GITHUB_USERNAME"
        )


def config_from_env(environ: Mapping[str, str] | None = None) -> Config:
    """Build configuration from environment variables.

    Args:
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Validated Config object.

    Raises:
        ValidationError: If a variable holds an invalid value.
    """
    env = os.environ if environ is None else environ

    def pick(*names: str) -> str | None:
        for name in names:
            if env.get(name):
                return env[name]
        return None

    gitlab: dict[str, Any] = {
        "token": pick("GITLAB_TOKEN"),
        "base_url": pick("GITLAB_BASE_URL"),
        "user_id": pick("GITLAB_USER_ID"),
        "team_users": pick("GITLAB_TEAM_USERS"),
        "allowed_projects": pick("GITLAB_ALLOWED_PROJECTS"),
    }
    github: dict[str, Any] = {
        "token": pick("GITHUB_TOKEN"),
        "username": pick("GITHUB_USERNAME", "GITHUB_USER_ID"),
        "allowed_repos": pick("GITHUB_ALLOWED_REPOS"),
    }
    api: dict[str, Any] = {
        "timeout_ms": pick("API_TIMEOUT"),
        "max_retries": pick("MAX_RETRIES"),
        "per_page": pick("PER_PAGE"),
    }
    output: dict[str, Any] = {
        "filename": pick("OUTPUT_FILENAME"),
        "format": pick("OUTPUT_FORMAT"),
    }

    raw: dict[str, Any] = {
        "gitlab": _drop_unset(gitlab),
        "github": _drop_unset(github),
        "api": _drop_unset(api),
        "output": _drop_unset(output),
    }
    if year := pick("YEAR"):
        raw["year"] = year
    if timezone := pick("TIMEZONE"):
        raw["timezone"] = timezone

    return Config.model_validate(raw)


def _drop_unset(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def load_config(path: Path) -> Config:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValidationError: If the config is invalid.
    """
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open() as f:
        raw_config: dict[str, Any] = yaml.safe_load(f) or {}

    return Config.model_validate(raw_config)
