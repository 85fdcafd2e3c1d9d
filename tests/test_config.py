"""Tests for configuration loading and validation."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from year_in_review.config import Config, ConfigurationError, config_from_env, load_config


class TestConfigFromEnv:
    """Tests for environment-based configuration."""

    def test_full_environment(self) -> None:
        """Test every supported variable is picked up."""
        config = config_from_env(
            {
                "GITLAB_TOKEN": "glpat-token",
                "GITLAB_BASE_URL": "https://git.example.com/api/v4",
                "GITLAB_USER_ID": "ada",
                "GITLAB_ALLOWED_PROJECTS": "core, docs",
                "GITHUB_TOKEN": "ghp_token",
                "GITHUB_USERNAME": "octo",
                "GITHUB_ALLOWED_REPOS": "engine",
                "YEAR": "2024",
                "TIMEZONE": "Europe/Berlin",
                "OUTPUT_FILENAME": "out.md",
                "OUTPUT_FORMAT": "json",
                "API_TIMEOUT": "5000",
                "MAX_RETRIES": "1",
                "PER_PAGE": "50",
            }
        )

        assert config.gitlab.base_url == "https://git.example.com/api/v4"
        assert config.gitlab.allowed_projects == ["core", "docs"]
        assert config.github.username == "octo"
        assert config.github.allowed_repos == ["engine"]
        assert config.year == 2024
        assert config.timezone == "Europe/Berlin"
        assert config.output.filename == "out.md"
        assert config.output.format == "json"
        assert config.api.timeout_seconds == 5.0
        assert config.api.max_retries == 1
        assert config.api.per_page == 50

    def test_defaults(self) -> None:
        """Test defaults apply when nothing is set."""
        config = config_from_env({})

        assert config.gitlab.base_url == "https://gitlab.com/api/v4"
        assert config.year == datetime.now(UTC).year
        assert config.timezone is None
        assert config.tzinfo is None
        assert config.output.format == "markdown"
        assert config.api.timeout_ms == 30000

    def test_github_user_id_alias(self) -> None:
        """Test GITHUB_USER_ID is accepted when GITHUB_USERNAME is absent."""
        config = config_from_env({"GITHUB_TOKEN": "t", "GITHUB_USER_ID": "octo"})
        assert config.github.username == "octo"

    def test_team_users(self) -> None:
        """Test a comma-separated team list enables team mode."""
        config = config_from_env({"GITLAB_TOKEN": "t", "GITLAB_TEAM_USERS": "ada, grace,,linus"})

        assert config.gitlab.team_users == ["ada", "grace", "linus"]
        assert config.gitlab.is_team
        assert config.gitlab.is_configured

    def test_invalid_number(self) -> None:
        """Test malformed numeric values are rejected."""
        with pytest.raises(ValidationError):
            config_from_env({"MAX_RETRIES": "many"})


class TestConfigValidation:
    """Tests for config validation rules."""

    def test_year_too_early(self) -> None:
        """Test years before 2000 are rejected."""
        with pytest.raises(ValidationError, match="year must be between"):
            Config.model_validate({"year": 1999})

    def test_year_too_late(self) -> None:
        """Test years after next year are rejected."""
        with pytest.raises(ValidationError):
            Config.model_validate({"year": datetime.now(UTC).year + 2})

    def test_next_year_allowed(self) -> None:
        """Test next year is the upper bound."""
        year = datetime.now(UTC).year + 1
        assert Config.model_validate({"year": year}).year == year

    def test_unknown_timezone(self) -> None:
        """Test unknown IANA names are rejected."""
        with pytest.raises(ValidationError, match="Unknown timezone"):
            Config.model_validate({"timezone": "Mars/Olympus"})

    def test_invalid_format(self) -> None:
        """Test output format must be markdown or json."""
        with pytest.raises(ValidationError):
            Config.model_validate({"output": {"format": "html"}})

    def test_per_page_limit(self) -> None:
        """Test page size is capped at 100."""
        with pytest.raises(ValidationError):
            Config.model_validate({"api": {"per_page": 500}})

    def test_no_platform_configured(self) -> None:
        """Test validate_platforms lists what is missing."""
        config = Config.model_validate({"gitlab": {"token": "t"}})

        with pytest.raises(ConfigurationError, match="GITLAB_USER_ID"):
            config.validate_platforms()

    def test_one_platform_is_enough(self) -> None:
        """Test GitHub alone satisfies validate_platforms."""
        config = Config.model_validate({"github": {"token": "t", "username": "octo"}})
        config.validate_platforms()


class TestLoadConfig:
    """Tests for YAML configuration files."""

    def test_load_yaml(self, tmp_path: Path) -> None:
        """Test loading a YAML file whose keys mirror the models."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "gitlab:\n"
            "  token: glpat-token\n"
            "  user_id: ada\n"
            "  allowed_projects: [core]\n"
            "year: 2025\n"
            "timezone: UTC\n"
            "api:\n"
            "  max_retries: 2\n"
        )

        config = load_config(path)

        assert config.gitlab.user_id == "ada"
        assert config.gitlab.allowed_projects == ["core"]
        assert config.year == 2025
        assert config.api.max_retries == 2
        assert config.tzinfo is not None

    def test_numeric_ids(self, tmp_path: Path) -> None:
        """Test bare numbers in YAML are accepted as ids and usernames."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "gitlab:\n"
            "  token: glpat-abc\n"
            "  user_id: 12345\n"
            "  team_users: [ada, 678]\n"
            "github:\n"
            "  token: ghp_token\n"
            "  username: 1337\n"
        )

        config = load_config(path)

        assert config.gitlab.user_id == "12345"
        assert config.gitlab.team_users == ["ada", "678"]
        assert config.github.username == "1337"
        config.validate_platforms()

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test an empty file yields defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path).github.username == ""

    def test_load_missing_file(self) -> None:
        """Test that loading a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(Path("/nonexistent/config.yaml"))
