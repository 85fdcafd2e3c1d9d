"""Normalization of raw GitLab and GitHub payloads.

Converts API JSON objects into the platform-neutral records in
``year_in_review.models`` so the analyzers never see platform quirks.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, tzinfo
from typing import Any

from year_in_review.analytics.calendar import parse_timestamp, to_local
from year_in_review.analytics.summary import UserSummary
from year_in_review.models import ActivityEvent, ProjectRef, WorkItem, WorkItemState

logger = logging.getLogger(__name__)

UNKNOWN_KIND = "unknown"


def gitlab_event(raw: dict[str, Any]) -> ActivityEvent:
    """Normalize a GitLab ``/users/:id/events`` entry.

    Args:
        raw: GitLab event object.

    Returns:
        ActivityEvent keyed by ``action_name`` and ``project_id``.
    """
    return ActivityEvent(
        timestamp=parse_timestamp(raw.get("created_at")),
        kind=raw.get("action_name") or UNKNOWN_KIND,
        owner_id=raw.get("project_id"),
    )


def github_event(raw: dict[str, Any]) -> ActivityEvent:
    """Normalize a GitHub ``/users/:user/events`` entry.

    GitHub events carry the repository's full name, which doubles as its
    display name.
    """
    repo = raw.get("repo") or {}
    return ActivityEvent(
        timestamp=parse_timestamp(raw.get("created_at")),
        kind=raw.get("type") or UNKNOWN_KIND,
        owner_id=repo.get("name"),
    )


def gitlab_work_item(raw: dict[str, Any]) -> WorkItem:
    """Normalize a GitLab merge request or issue."""
    return WorkItem(
        state=WorkItemState.from_raw(raw.get("state")),
        created_at=parse_timestamp(raw.get("created_at")),
        resolved_at=parse_timestamp(raw.get("merged_at")),
        owner_id=raw.get("project_id"),
    )


def determine_pr_state(pr: dict[str, Any]) -> WorkItemState:
    """Determine pull request state (open/closed/merged).

    GitHub's PR state field only shows "open" or "closed"; a non-null
    ``merged_at`` distinguishes merged pull requests.
    """
    if pr.get("merged_at") is not None:
        return WorkItemState.MERGED
    return WorkItemState.from_raw(pr.get("state"))


def github_pull_request(raw: dict[str, Any]) -> WorkItem:
    """Normalize a GitHub pull request."""
    base = (raw.get("base") or {}).get("repo") or {}
    return WorkItem(
        state=determine_pr_state(raw),
        created_at=parse_timestamp(raw.get("created_at")),
        resolved_at=parse_timestamp(raw.get("merged_at")),
        owner_id=base.get("full_name"),
    )


def gitlab_project(raw: dict[str, Any]) -> ProjectRef:
    """Normalize a GitLab project object."""
    return ProjectRef(id=raw["id"], name=project_display_name(raw))


def project_display_name(raw: dict[str, Any]) -> str | None:
    """Pick the most readable name GitLab offers for a project."""
    return raw.get("name") or raw.get("path_with_namespace")


def gitlab_user(raw: dict[str, Any]) -> UserSummary:
    """Normalize a GitLab user object."""
    return UserSummary(
        id=raw.get("id"),
        name=raw.get("name"),
        username=raw.get("username"),
        email=raw.get("email"),
    )


def github_user(raw: dict[str, Any]) -> UserSummary:
    """Normalize a GitHub user object."""
    return UserSummary(
        id=raw.get("id"),
        name=raw.get("name"),
        username=raw.get("login"),
        email=raw.get("email"),
    )


def in_year(ts: datetime | None, year: int, tz: tzinfo | None = None) -> bool:
    """Check whether a timestamp falls in ``year`` in local time."""
    return ts is not None and to_local(ts, tz).year == year


def is_repo_allowed(full_name: str | None, allowed_repos: Sequence[str]) -> bool:
    """Check a GitHub repository against an allow-list.

    Entries match either the full ``owner/name`` or just the name part.
    Without an allow-list, or without repository information, everything is
    allowed.
    """
    if not allowed_repos or not full_name:
        return True
    short_name = full_name.split("/", 1)[-1]
    return full_name in allowed_repos or short_name in allowed_repos


def filter_github_events(
    raw_events: Iterable[dict[str, Any]],
    year: int,
    allowed_repos: Sequence[str] = (),
    tz: tzinfo | None = None,
) -> list[ActivityEvent]:
    """Normalize GitHub events, keeping those of ``year`` in allowed repos.

    The GitHub events feed has no date filter, so the year window is applied
    client-side.
    """
    events: list[ActivityEvent] = []
    total = 0
    for raw in raw_events:
        total += 1
        event = github_event(raw)
        if not in_year(event.timestamp, year, tz):
            continue
        owner = str(event.owner_id) if event.owner_id is not None else None
        if not is_repo_allowed(owner, allowed_repos):
            continue
        events.append(event)

    if allowed_repos:
        logger.info(
            "Filtered GitHub events from %d to %d based on allowed repositories",
            total,
            len(events),
        )
    return events


def filter_gitlab_events(
    raw_events: Iterable[dict[str, Any]],
    year: int,
    tz: tzinfo | None = None,
) -> list[ActivityEvent]:
    """Normalize GitLab events, dropping those outside ``year`` in local time.

    Events without a usable timestamp are kept so they still count towards
    totals.
    """
    events = [gitlab_event(raw) for raw in raw_events]
    kept = [e for e in events if e.timestamp is None or in_year(e.timestamp, year, tz)]
    if len(kept) != len(events):
        logger.debug("Dropped %d GitLab events outside %d", len(events) - len(kept), year)
    return kept
