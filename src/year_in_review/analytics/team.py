"""Team-wide rollup of individual year summaries."""

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from year_in_review.analytics.events import ProjectCount, rank_counts
from year_in_review.analytics.summary import YearSummary

TOP_USERS_LIMIT = 5
TOP_TEAM_PROJECTS_LIMIT = 10


@dataclass(frozen=True)
class UserActivity:
    """One entry of the most-active-users ranking."""

    name: str
    count: int


@dataclass(frozen=True)
class TeamMetrics:
    """Aggregates across all team members of a year."""

    year: int
    members: tuple[YearSummary, ...] = ()
    total_activities: int = 0
    total_projects: int = 0
    most_active_users: list[UserActivity] = field(default_factory=list)
    top_projects: list[ProjectCount] = field(default_factory=list)

    @property
    def member_count(self) -> int:
        return len(self.members)


def analyze_team(year: int, summaries: Sequence[YearSummary]) -> TeamMetrics:
    """Roll individual summaries up into team metrics.

    Users are ranked by GitLab activity; projects by their summed
    contribution totals across members. Distinct projects are counted by
    GitLab project name.
    """
    project_names: set[str] = set()
    project_totals: defaultdict[str, int] = defaultdict(int)

    for summary in summaries:
        if summary.gitlab is None:
            continue
        project_names.update(summary.gitlab.projects.names)
        for project, contribution in summary.gitlab.events.per_project_contribution.items():
            project_totals[project] += contribution.total

    def gitlab_activities(summary: YearSummary) -> int:
        return summary.gitlab.total_activities if summary.gitlab else 0

    ranked_users = sorted(summaries, key=gitlab_activities, reverse=True)

    return TeamMetrics(
        year=year,
        members=tuple(summaries),
        total_activities=sum(s.total_activities for s in summaries),
        total_projects=len(project_names),
        most_active_users=[
            UserActivity(name=s.display_name, count=gitlab_activities(s))
            for s in ranked_users[:TOP_USERS_LIMIT]
        ],
        top_projects=rank_counts(dict(project_totals), TOP_TEAM_PROJECTS_LIMIT),
    )
