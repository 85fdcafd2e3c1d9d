"""Contribution calendars, project rosters and review participation."""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC
from typing import Any

from year_in_review.analytics.calendar import local_date_key
from year_in_review.analytics.events import fallback_project_name
from year_in_review.models import ActivityEvent, OwnerId, ProjectRef


@dataclass(frozen=True)
class ContributionSummary:
    """GitHub contribution totals.

    Built either from the GraphQL contribution calendar (typed totals
    available) or, as a fallback, from the REST event feed (per-repo and
    per-type breakdowns available instead).
    """

    total: int = 0
    total_commits: int | None = None
    total_issues: int | None = None
    total_pull_requests: int | None = None
    total_reviews: int | None = None
    total_repositories: int | None = None
    by_date: dict[str, int] = field(default_factory=dict)
    by_repo: dict[str, int] | None = None
    by_type: dict[str, int] | None = None

    @property
    def has_typed_totals(self) -> bool:
        return self.total_commits is not None

    @classmethod
    def from_graphql(cls, collection: dict[str, Any]) -> "ContributionSummary":
        """Build from a ``contributionsCollection`` GraphQL payload.

        Args:
            collection: The ``user.contributionsCollection`` object.

        Returns:
            ContributionSummary with typed totals and a per-day calendar.
        """
        calendar = collection.get("contributionCalendar") or {}
        by_date: dict[str, int] = {}
        for week in calendar.get("weeks") or []:
            for day in week.get("contributionDays") or []:
                if day.get("date"):
                    by_date[day["date"]] = day.get("contributionCount", 0)

        return cls(
            total=calendar.get("totalContributions") or 0,
            total_commits=collection.get("totalCommitContributions") or 0,
            total_issues=collection.get("totalIssueContributions") or 0,
            total_pull_requests=collection.get("totalPullRequestContributions") or 0,
            total_reviews=collection.get("totalPullRequestReviewContributions") or 0,
            total_repositories=collection.get("totalRepositoryContributions") or 0,
            by_date=by_date,
        )


def summarize_contributions(events: Iterable[ActivityEvent]) -> ContributionSummary:
    """Derive a contribution summary from raw activity events.

    Used when the GraphQL contribution calendar is unavailable. Every event
    counts as one contribution; dates are UTC calendar days.
    """
    total = 0
    by_date: defaultdict[str, int] = defaultdict(int)
    by_repo: defaultdict[str, int] = defaultdict(int)
    by_type: defaultdict[str, int] = defaultdict(int)

    for event in events:
        total += 1
        if event.timestamp is not None:
            by_date[local_date_key(event.timestamp, UTC)] += 1
        if event.owner_id is not None:
            by_repo[str(event.owner_id)] += 1
        by_type[event.kind] += 1

    return ContributionSummary(
        total=total,
        by_date=dict(by_date),
        by_repo=dict(by_repo),
        by_type=dict(by_type),
    )


@dataclass(frozen=True)
class ProjectsSummary:
    """Distinct projects a user touched, in first-seen order."""

    total: int = 0
    names: tuple[str, ...] = ()


def summarize_projects(projects: Iterable[ProjectRef]) -> ProjectsSummary:
    """Merge project references, de-duplicating by id (first occurrence wins)."""
    seen: dict[OwnerId, str] = {}
    for project in projects:
        if project.id not in seen:
            seen[project.id] = project.name or fallback_project_name(project.id)

    return ProjectsSummary(total=len(seen), names=tuple(seen.values()))


def is_review_candidate(
    merge_request: dict[str, Any],
    user_id: OwnerId,
    username: str | None = None,
) -> bool:
    """Best-effort guess whether a user reviewed a merge request.

    The GitLab merge request list has no review-history filter that covers
    every instance version, so participation is inferred: the user must not
    be the author, and must appear among the reviewers or assignees, or be
    @-mentioned in the description.

    Args:
        merge_request: Raw GitLab merge request object.
        user_id: Numeric GitLab user id.
        username: GitLab username used for description mentions.

    Returns:
        True if the merge request likely involved the user as a reviewer.
    """
    author = merge_request.get("author") or {}
    if author.get("id") == user_id:
        return False

    for role in ("reviewers", "assignees"):
        people = merge_request.get(role) or []
        if any(person.get("id") == user_id for person in people):
            return True

    description = merge_request.get("description") or ""
    return bool(username) and f"@{username}" in description
