"""Report file naming and writing."""

import json
import logging
from pathlib import Path
from typing import Any

from year_in_review.analytics.summary import YearSummary, platform_label
from year_in_review.analytics.team import TeamMetrics

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"
JSON_SUFFIX = ".json"


def output_filename(summary: YearSummary, override: str | None = None) -> str:
    """Report filename: ``{platform}-year-in-review-{year}.md`` unless overridden."""
    if override:
        return override
    return f"{platform_label(summary)}-year-in-review-{summary.year}{MARKDOWN_SUFFIX}"


def team_output_filename(year: int, override: str | None = None) -> str:
    """Team report filename: ``team-year-in-review-{year}.md`` unless overridden."""
    if override:
        return override
    return f"team-year-in-review-{year}{MARKDOWN_SUFFIX}"


def json_filename(filename: str) -> str:
    """Swap a Markdown filename's suffix for ``.json``."""
    return str(Path(filename).with_suffix(JSON_SUFFIX))


def write_report(path: Path, text: str) -> Path:
    """Write a rendered report, creating parent directories.

    Returns:
        The path written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logger.info("Report saved to %s", path)
    return path


def team_to_dict(team: TeamMetrics) -> dict[str, Any]:
    """Plain-data form of team metrics for JSON export."""
    return {
        "year": team.year,
        "member_count": team.member_count,
        "total_activities": team.total_activities,
        "total_projects": team.total_projects,
        "most_active_users": [{"name": u.name, "count": u.count} for u in team.most_active_users],
        "top_projects": [{"project": p.project, "count": p.count} for p in team.top_projects],
        "members": [member.to_dict() for member in team.members],
    }


def write_json(path: Path, data: dict[str, Any]) -> Path:
    """Write summary data as indented JSON.

    Datetimes and timedeltas are serialized with ``str``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
    logger.info("Summary data saved to %s", path)
    return path
