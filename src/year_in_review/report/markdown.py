"""Markdown rendering of year summaries.

Reports are rendered from Jinja2 templates in ``report/templates``; the
monthly activity chart is assembled in Python since it is pure arithmetic.
"""

import logging
import math
import re
from collections.abc import Mapping

from jinja2 import Environment, PackageLoader

from year_in_review.analytics.calendar import DAY_NAMES, MONTH_NAMES
from year_in_review.analytics.events import UNKNOWN_PROJECT
from year_in_review.analytics.summary import (
    ALL_PLATFORMS,
    GITHUB,
    PlatformSummary,
    YearSummary,
    platform_label,
)
from year_in_review.analytics.team import TeamMetrics

logger = logging.getLogger(__name__)

CHART_WIDTH = 20
CHART_FILLED = "█"
CHART_EMPTY = "░"
MONTH_COLUMN_WIDTH = 10
PROJECT_NAMES_SHOWN = 10

REPORT_TITLES = {
    GITHUB: "GitHub Year-in-Review Report",
    ALL_PLATFORMS: "Combined Year-in-Review Report",
}
DEFAULT_TITLE = "GitLab Year-in-Review Report"


def kind_label(kind: str, strip_event: bool = False) -> str:
    """Humanize an event kind.

    ``pushed_to`` becomes ``Pushed To``; with ``strip_event`` GitHub's
    trailing ``Event`` is dropped first, so ``PushEvent`` becomes ``Push``.
    """
    if strip_event:
        kind = re.sub(r"Event$", "", kind)
    return re.sub(r"\b\w", lambda m: m.group().upper(), kind.replace("_", " "))


def day_name(day: int) -> str:
    """Weekday name for a 0 = Sunday index."""
    return DAY_NAMES[day]


def ranked(counts: Mapping[str, int] | None, limit: int | None = None) -> list[tuple[str, int]]:
    """Items of a count mapping sorted descending, ties in insertion order."""
    if not counts:
        return []
    items = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return items[:limit] if limit is not None else items


def known_projects(contributions: Mapping[str, object]) -> dict[str, object]:
    """Drop the placeholder bucket for events without a project."""
    return {name: c for name, c in contributions.items() if name != UNKNOWN_PROJECT}


def _create_environment() -> Environment:
    env = Environment(
        loader=PackageLoader("year_in_review", "report/templates"),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["kind_label"] = kind_label
    env.filters["day_name"] = day_name
    env.filters["ranked"] = ranked
    env.filters["known_projects"] = known_projects
    return env


_env = _create_environment()


def render_report(summary: YearSummary, include_chart: bool = True) -> str:
    """Render a single-user year-in-review report.

    Args:
        summary: Collected year summary.
        include_chart: Append the monthly activity chart.

    Returns:
        Markdown document. Sections appear only for platforms present in the
        summary.
    """
    template = _env.get_template("report.md.j2")
    report = template.render(
        title=REPORT_TITLES.get(platform_label(summary), DEFAULT_TITLE),
        summary=summary,
        gitlab=summary.gitlab,
        github=summary.github,
        project_names_shown=PROJECT_NAMES_SHOWN,
    )
    if include_chart:
        report += render_activity_chart(summary)

    logger.debug("Rendered report for %s (%d characters)", summary.display_name, len(report))
    return report


def render_team_report(team: TeamMetrics) -> str:
    """Render a team year-in-review report."""
    template = _env.get_template("team_report.md.j2")
    return template.render(team=team)


def chart_bar(count: int, peak: int) -> str:
    """Fixed-width bar for ``count`` scaled against the busiest month."""
    filled = math.floor(count / max(peak, 1) * CHART_WIDTH + 0.5)
    return CHART_FILLED * filled + CHART_EMPTY * (CHART_WIDTH - filled)


def _platform_chart(name: str, platform: PlatformSummary) -> list[str]:
    monthly = platform.events.monthly_counts
    peak = max((monthly.get(month, 0) for month in MONTH_NAMES), default=0)

    lines = [f"### {name} Monthly Activity Chart", "", "```"]
    for month in MONTH_NAMES:
        count = monthly.get(month, 0)
        lines.append(f"{month.ljust(MONTH_COLUMN_WIDTH)} |{chart_bar(count, peak)}| {count}")
    lines.extend(["```", ""])
    return lines


def render_activity_chart(summary: YearSummary) -> str:
    """Render a text bar chart of monthly activity per platform."""
    lines = ["## Activity Visualization", ""]
    if summary.gitlab is not None:
        lines.extend(_platform_chart("GitLab", summary.gitlab))
    if summary.github is not None:
        lines.extend(_platform_chart("GitHub", summary.github))
    return "\n".join(lines) + "\n"
