"""Event tallies and per-project contribution breakdowns."""

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import tzinfo

from year_in_review.analytics.calendar import MONTH_NAMES, month_name, to_local
from year_in_review.models import ActivityEvent, OwnerId

logger = logging.getLogger(__name__)

UNKNOWN_PROJECT = "Unknown Project"
UNKNOWN_MONTH = "Unknown"
TOP_PROJECTS_LIMIT = 5

ProjectResolver = Callable[[OwnerId], str | None]


def fallback_project_name(owner_id: OwnerId) -> str:
    """Placeholder name for a project whose real name is unavailable."""
    return f"Project-{owner_id}"


class ProjectNameCache:
    """Memoizes a project-name resolver for one analysis run.

    The resolver is called at most once per distinct owner id. Empty results
    and resolver failures degrade to ``Project-{id}`` instead of aborting.
    """

    def __init__(self, resolver: ProjectResolver | None = None) -> None:
        self._resolver = resolver
        self._names: dict[OwnerId, str] = {}

    def __len__(self) -> int:
        return len(self._names)

    def resolve(self, owner_id: OwnerId | None) -> str:
        """Return the display name for ``owner_id``."""
        if owner_id is None:
            return UNKNOWN_PROJECT

        if owner_id in self._names:
            return self._names[owner_id]

        name: str | None = None
        if self._resolver is not None:
            try:
                name = self._resolver(owner_id)
            except Exception as e:
                logger.warning("Could not resolve project %s: %s", owner_id, e)

        resolved = name or fallback_project_name(owner_id)
        self._names[owner_id] = resolved
        return resolved


def is_project_allowed(project_name: str, allowed_projects: Sequence[str]) -> bool:
    """Check a project name against an allow-list of name fragments.

    Matching is case-insensitive and works in both directions: the project
    name may contain an entry, or an entry may contain the project name. An
    empty allow-list allows everything.
    """
    if not allowed_projects:
        return True

    name = project_name.lower()
    return any(
        entry.lower() in name or name in entry.lower() for entry in allowed_projects
    )


@dataclass(frozen=True)
class ProjectContribution:
    """Events in one project split into pushes and everything else."""

    total: int = 0
    push_count: int = 0
    other_count: int = 0


@dataclass(frozen=True)
class ProjectCount:
    """One entry of a top-N project ranking."""

    project: str
    count: int


@dataclass(frozen=True)
class EventMetrics:
    """Aggregated event statistics for one platform.

    ``total_events`` and ``event_kind_counts`` cover every input event; the
    per-project figures, ``monthly_counts`` and the rankings cover only the
    events that passed the project allow-list (``retained_events``).
    """

    total_events: int = 0
    event_kind_counts: dict[str, int] = field(default_factory=dict)
    per_project_counts: dict[str, int] = field(default_factory=dict)
    per_project_contribution: dict[str, ProjectContribution] = field(default_factory=dict)
    top_projects: list[ProjectCount] = field(default_factory=list)
    most_active_month: str = ""
    monthly_counts: dict[str, int] = field(default_factory=dict)
    retained_events: int = 0


def rank_counts(counts: dict[str, int], limit: int) -> list[ProjectCount]:
    """Sort counts descending, keeping insertion order among ties."""
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [ProjectCount(project=name, count=count) for name, count in ranked[:limit]]


def analyze_events(
    events: Iterable[ActivityEvent],
    resolver: ProjectResolver | None = None,
    allowed_projects: Sequence[str] = (),
    push_marker: str = "push",
    tz: tzinfo | None = None,
) -> EventMetrics:
    """Tally events by kind, project and month.

    Args:
        events: Activity events of one platform.
        resolver: Maps an owner id to a display name. Called at most once per
            distinct id; None or an empty result yields ``Project-{id}``.
        allowed_projects: Optional allow-list of project name fragments
            (see is_project_allowed).
        push_marker: Case-sensitive substring identifying push events
            (``"push"`` for GitLab action names, ``"PushEvent"`` for GitHub).
        tz: Timezone used for month bucketing (process-local if None).

    Returns:
        EventMetrics; zero-valued for an empty input.
    """
    names = ProjectNameCache(resolver)

    total_events = 0
    retained = 0
    kind_counts: defaultdict[str, int] = defaultdict(int)
    project_counts: defaultdict[str, int] = defaultdict(int)
    push_counts: defaultdict[str, int] = defaultdict(int)
    monthly: defaultdict[str, int] = defaultdict(int)

    for event in events:
        total_events += 1
        kind_counts[event.kind] += 1

        project = names.resolve(event.owner_id)
        if not is_project_allowed(project, allowed_projects):
            continue

        retained += 1
        project_counts[project] += 1
        if push_marker in event.kind:
            push_counts[project] += 1

        if event.timestamp is None:
            monthly[UNKNOWN_MONTH] += 1
        else:
            monthly[month_name(to_local(event.timestamp, tz))] += 1

    contributions = {
        project: ProjectContribution(
            total=count,
            push_count=push_counts[project],
            other_count=count - push_counts[project],
        )
        for project, count in project_counts.items()
    }

    ordered_months = {name: monthly[name] for name in MONTH_NAMES if name in monthly}
    if UNKNOWN_MONTH in monthly:
        ordered_months[UNKNOWN_MONTH] = monthly[UNKNOWN_MONTH]

    known_months = {k: v for k, v in ordered_months.items() if k != UNKNOWN_MONTH}
    most_active_month = max(known_months, key=known_months.__getitem__) if known_months else ""

    logger.debug(
        "Analyzed %d events (%d retained) across %d projects, %d names resolved",
        total_events,
        retained,
        len(project_counts),
        len(names),
    )

    return EventMetrics(
        total_events=total_events,
        event_kind_counts=dict(kind_counts),
        per_project_counts=dict(project_counts),
        per_project_contribution=contributions,
        top_projects=rank_counts(dict(project_counts), TOP_PROJECTS_LIMIT),
        most_active_month=most_active_month,
        monthly_counts=ordered_months,
        retained_events=retained,
    )
