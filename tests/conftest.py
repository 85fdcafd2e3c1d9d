"""Test fixtures for year-in-review.

Provides:
- Factories for normalized activity records
- Raw GitLab and GitHub payload samples
- Configurations pointing at mocked API hosts
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from year_in_review.config import Config
from year_in_review.models import ActivityEvent, OwnerId, WorkItem, WorkItemState

GITLAB_URL = "https://gitlab.example.com/api/v4"
GITHUB_URL = "https://api.github.com"
GITLAB_TOKEN = "glpat-" + "x" * 20
GITHUB_TOKEN = "ghp_" + "a" * 36


def at(value: str) -> datetime:
    """Parse an ISO timestamp, assuming UTC when no offset is given."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


@pytest.fixture
def make_event() -> Callable[..., ActivityEvent]:
    """Factory for ActivityEvent records."""

    def _make(
        timestamp: str | None = "2025-01-15T10:00:00Z",
        kind: str = "pushed to",
        owner_id: OwnerId | None = 1,
    ) -> ActivityEvent:
        return ActivityEvent(
            timestamp=at(timestamp) if timestamp else None,
            kind=kind,
            owner_id=owner_id,
        )

    return _make


@pytest.fixture
def make_item() -> Callable[..., WorkItem]:
    """Factory for WorkItem records."""

    def _make(
        state: WorkItemState = WorkItemState.MERGED,
        created_at: str | None = "2025-01-01T00:00:00Z",
        resolved_at: str | None = None,
        owner_id: OwnerId | None = 1,
    ) -> WorkItem:
        return WorkItem(
            state=state,
            created_at=at(created_at) if created_at else None,
            resolved_at=at(resolved_at) if resolved_at else None,
            owner_id=owner_id,
        )

    return _make


@pytest.fixture
def gitlab_user_payload() -> dict[str, Any]:
    """GitLab user object."""
    return {
        "id": 42,
        "name": "Ada Lovelace",
        "username": "ada",
        "email": "ada@example.com",
    }


@pytest.fixture
def gitlab_events_payload() -> list[dict[str, Any]]:
    """GitLab events across two projects."""
    return [
        {"action_name": "pushed to", "project_id": 1, "created_at": "2025-03-03T09:00:00Z"},
        {"action_name": "pushed to", "project_id": 1, "created_at": "2025-03-04T09:30:00Z"},
        {"action_name": "commented on", "project_id": 2, "created_at": "2025-03-05T14:00:00Z"},
        {"action_name": "opened", "project_id": 1, "created_at": "2025-06-10T11:00:00Z"},
    ]


@pytest.fixture
def github_events_payload() -> list[dict[str, Any]]:
    """GitHub events, one of them outside 2025."""
    return [
        {
            "type": "PushEvent",
            "repo": {"name": "ada/engine"},
            "created_at": "2025-05-01T08:00:00Z",
        },
        {
            "type": "PushEvent",
            "repo": {"name": "ada/engine"},
            "created_at": "2025-05-02T08:00:00Z",
        },
        {
            "type": "IssuesEvent",
            "repo": {"name": "ada/notes"},
            "created_at": "2025-07-01T12:00:00Z",
        },
        {
            "type": "PushEvent",
            "repo": {"name": "ada/engine"},
            "created_at": "2024-12-31T12:00:00Z",
        },
    ]


@pytest.fixture
def base_config() -> Config:
    """Configuration with both platforms pointing at mocked hosts."""
    return Config.model_validate(
        {
            "gitlab": {
                "token": GITLAB_TOKEN,
                "base_url": GITLAB_URL,
                "user_id": "ada",
            },
            "github": {"token": GITHUB_TOKEN, "username": "ada"},
            "year": 2025,
            "timezone": "UTC",
            "api": {"max_retries": 0, "per_page": 100},
        }
    )
