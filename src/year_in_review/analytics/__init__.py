"""Pure analyzers turning activity records into year-in-review metrics."""

from year_in_review.analytics.calendar import (
    day_of_week,
    hour_of_day,
    iso_week_number,
    month_name,
    parse_timestamp,
)
from year_in_review.analytics.contributions import (
    ContributionSummary,
    ProjectsSummary,
    is_review_candidate,
    summarize_contributions,
    summarize_projects,
)
from year_in_review.analytics.events import (
    EventMetrics,
    ProjectContribution,
    ProjectCount,
    ProjectNameCache,
    analyze_events,
    is_project_allowed,
)
from year_in_review.analytics.streaks import StreakMetrics, analyze_streaks
from year_in_review.analytics.summary import (
    PlatformSummary,
    UserSummary,
    YearSummary,
    platform_label,
)
from year_in_review.analytics.team import TeamMetrics, UserActivity, analyze_team
from year_in_review.analytics.time_patterns import TimeMetrics, analyze_time_patterns
from year_in_review.analytics.work_items import WorkItemMetrics, analyze_work_items

__all__ = [
    "ContributionSummary",
    "EventMetrics",
    "PlatformSummary",
    "ProjectContribution",
    "ProjectCount",
    "ProjectNameCache",
    "ProjectsSummary",
    "StreakMetrics",
    "TeamMetrics",
    "TimeMetrics",
    "UserActivity",
    "UserSummary",
    "WorkItemMetrics",
    "YearSummary",
    "analyze_events",
    "analyze_streaks",
    "analyze_team",
    "analyze_time_patterns",
    "analyze_work_items",
    "day_of_week",
    "hour_of_day",
    "is_project_allowed",
    "is_review_candidate",
    "iso_week_number",
    "month_name",
    "parse_timestamp",
    "platform_label",
    "summarize_contributions",
    "summarize_projects",
]
