"""Merged metrics objects handed to the report renderer."""

from dataclasses import asdict, dataclass, field
from typing import Any

from year_in_review.analytics.contributions import ContributionSummary, ProjectsSummary
from year_in_review.analytics.events import EventMetrics
from year_in_review.analytics.streaks import StreakMetrics
from year_in_review.analytics.time_patterns import TimeMetrics
from year_in_review.analytics.work_items import WorkItemMetrics
from year_in_review.models import OwnerId

GITLAB = "gitlab"
GITHUB = "github"
ALL_PLATFORMS = "all-platforms"


@dataclass(frozen=True)
class UserSummary:
    """Profile of the user a report is about."""

    id: OwnerId | None = None
    name: str | None = None
    username: str | None = None
    email: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.username or "Unknown"


@dataclass(frozen=True)
class PlatformSummary:
    """Everything computed for one user on one platform."""

    platform: str
    events: EventMetrics = field(default_factory=EventMetrics)
    time_patterns: TimeMetrics = field(default_factory=TimeMetrics)
    streaks: StreakMetrics = field(default_factory=StreakMetrics)
    projects: ProjectsSummary = field(default_factory=ProjectsSummary)
    merge_requests: WorkItemMetrics | None = None
    issues: WorkItemMetrics | None = None
    assigned_merge_requests: int = 0
    assigned_issues: int = 0
    code_reviews: int = 0
    commits: int = 0
    contributions: ContributionSummary | None = None
    user: UserSummary | None = None

    @property
    def total_activities(self) -> int:
        return self.events.total_events

    @property
    def total_projects(self) -> int:
        return self.projects.total

    @property
    def has_activity(self) -> bool:
        return self.events.total_events > 0


@dataclass(frozen=True)
class YearSummary:
    """Combined view of one user's year across the configured platforms."""

    year: int
    user: UserSummary | None = None
    gitlab: PlatformSummary | None = None
    github: PlatformSummary | None = None
    username: str | None = None

    @property
    def platforms(self) -> list[PlatformSummary]:
        return [p for p in (self.gitlab, self.github) if p is not None]

    @property
    def total_activities(self) -> int:
        return sum(p.total_activities for p in self.platforms)

    @property
    def total_projects(self) -> int:
        return sum(p.total_projects for p in self.platforms)

    @property
    def display_name(self) -> str:
        if self.user is not None and self.user.name:
            return self.user.name
        return self.username or (self.user.username if self.user else None) or "Unknown"

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form for JSON export."""
        data = asdict(self)
        data["overall"] = {
            "total_activities": self.total_activities,
            "total_projects": self.total_projects,
        }
        return data


def platform_label(summary: YearSummary) -> str:
    """Name the platforms that contributed activity to a summary.

    Returns ``all-platforms`` when both GitLab and GitHub produced events,
    ``github`` when only GitHub did, and ``gitlab`` otherwise.
    """
    has_gitlab = summary.gitlab is not None and summary.gitlab.has_activity
    has_github = summary.github is not None and summary.github.has_activity

    if has_gitlab and has_github:
        return ALL_PLATFORMS
    if has_github:
        return GITHUB
    return GITLAB
