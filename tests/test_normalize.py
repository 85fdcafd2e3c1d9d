"""Tests for payload normalization."""

from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from year_in_review.models import WorkItemState
from year_in_review.normalize import (
    determine_pr_state,
    filter_github_events,
    filter_gitlab_events,
    github_event,
    github_pull_request,
    github_user,
    gitlab_event,
    gitlab_project,
    gitlab_user,
    gitlab_work_item,
    in_year,
    is_repo_allowed,
)


class TestGitLabNormalization:
    """Tests for GitLab payload normalization."""

    def test_event(self) -> None:
        """Test events map action name, project and timestamp."""
        event = gitlab_event(
            {"action_name": "pushed to", "project_id": 5, "created_at": "2025-02-01T10:00:00.000Z"}
        )

        assert event.kind == "pushed to"
        assert event.owner_id == 5
        assert event.timestamp == datetime(2025, 2, 1, 10, tzinfo=UTC)

    def test_event_missing_fields(self) -> None:
        """Test sparse events normalize without errors."""
        event = gitlab_event({})

        assert event.kind == "unknown"
        assert event.owner_id is None
        assert event.timestamp is None

    def test_merge_request(self) -> None:
        """Test merge requests carry state and merge time."""
        item = gitlab_work_item(
            {
                "state": "merged",
                "project_id": 3,
                "created_at": "2025-01-01T00:00:00Z",
                "merged_at": "2025-01-02T00:00:00Z",
            }
        )

        assert item.state is WorkItemState.MERGED
        assert item.owner_id == 3
        assert item.resolved_at == datetime(2025, 1, 2, tzinfo=UTC)

    def test_project_name_fallback(self) -> None:
        """Test projects fall back to their namespaced path."""
        assert gitlab_project({"id": 1, "name": "core"}).name == "core"
        assert gitlab_project({"id": 2, "path_with_namespace": "grp/docs"}).name == "grp/docs"

    def test_user(self, gitlab_user_payload: dict[str, Any]) -> None:
        """Test user profile fields."""
        user = gitlab_user(gitlab_user_payload)

        assert user.id == 42
        assert user.name == "Ada Lovelace"
        assert user.username == "ada"
        assert user.display_name == "Ada Lovelace"


class TestGitHubNormalization:
    """Tests for GitHub payload normalization."""

    def test_event(self) -> None:
        """Test events are keyed by type and repository full name."""
        event = github_event(
            {"type": "PushEvent", "repo": {"name": "ada/engine"}, "created_at": "2025-05-01T08:00:00Z"}
        )

        assert event.kind == "PushEvent"
        assert event.owner_id == "ada/engine"

    def test_pull_request_merged(self) -> None:
        """Test merged_at distinguishes merged pull requests."""
        pr = {
            "state": "closed",
            "merged_at": "2025-03-02T00:00:00Z",
            "created_at": "2025-03-01T00:00:00Z",
            "base": {"repo": {"full_name": "ada/engine"}},
        }

        item = github_pull_request(pr)

        assert item.state is WorkItemState.MERGED
        assert item.owner_id == "ada/engine"

    def test_pull_request_states(self) -> None:
        """Test open and closed pull requests without merge time."""
        assert determine_pr_state({"state": "open", "merged_at": None}) is WorkItemState.OPEN
        assert determine_pr_state({"state": "closed", "merged_at": None}) is WorkItemState.CLOSED

    def test_user_uses_login(self) -> None:
        """Test GitHub login maps to username."""
        user = github_user({"id": 7, "login": "octo", "name": None})

        assert user.username == "octo"
        assert user.display_name == "octo"


class TestFilters:
    """Tests for year and repository filtering."""

    def test_in_year(self) -> None:
        """Test year membership in the requested timezone."""
        ts = datetime(2024, 12, 31, 23, 0, tzinfo=UTC)

        assert in_year(ts, 2024, UTC)
        assert not in_year(ts, 2025, UTC)
        assert not in_year(None, 2025, UTC)

    def test_is_repo_allowed(self) -> None:
        """Test full names and bare names both match."""
        assert is_repo_allowed("ada/engine", [])
        assert is_repo_allowed("ada/engine", ["ada/engine"])
        assert is_repo_allowed("ada/engine", ["engine"])
        assert not is_repo_allowed("ada/notes", ["engine"])
        assert is_repo_allowed(None, ["engine"])

    def test_filter_github_events_by_year(
        self, github_events_payload: list[dict[str, Any]]
    ) -> None:
        """Test events outside the year are dropped."""
        events = filter_github_events(github_events_payload, 2025, tz=UTC)

        assert len(events) == 3
        assert all(e.timestamp is not None and e.timestamp.year == 2025 for e in events)

    def test_filter_github_events_by_repo(
        self, github_events_payload: list[dict[str, Any]]
    ) -> None:
        """Test the repository allow-list applies after the year window."""
        events = filter_github_events(github_events_payload, 2025, ["notes"], tz=UTC)
        assert [e.owner_id for e in events] == ["ada/notes"]

    def test_filter_gitlab_events_by_local_year(self) -> None:
        """Test GitLab events are trimmed to the year in the report timezone."""
        raw = [
            {"action_name": "pushed to", "project_id": 1, "created_at": "2024-12-31T20:00:00Z"},
            {"action_name": "pushed to", "project_id": 1, "created_at": "2025-06-01T12:00:00Z"},
            {"action_name": "pushed to", "project_id": 1, "created_at": "2025-12-31T20:00:00Z"},
            {"action_name": "opened", "project_id": 2, "created_at": None},
        ]

        in_utc = filter_gitlab_events(raw, 2025, tz=UTC)
        in_tokyo = filter_gitlab_events(raw, 2025, tz=ZoneInfo("Asia/Tokyo"))

        assert [e.timestamp.day if e.timestamp else None for e in in_utc] == [1, 31, None]
        assert [e.timestamp.day if e.timestamp else None for e in in_tokyo] == [31, 1, None]
