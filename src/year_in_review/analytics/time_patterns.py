"""Hour, weekday, ISO-week and month histograms of activity."""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import TypeVar

from year_in_review.analytics.calendar import (
    MONTH_NAMES,
    iso_week_number,
    month_name,
    to_local,
)
from year_in_review.models import ActivityEvent


K = TypeVar("K")


def first_max(counts: Mapping[K, int]) -> tuple[K, int] | None:
    """Return the first (key, count) pair holding the highest count."""
    if not counts:
        return None
    key = max(counts, key=counts.__getitem__)
    return key, counts[key]


@dataclass(frozen=True)
class TimeMetrics:
    """Activity histograms.

    Hour (0-23), weekday (0 = Sunday) and ISO week keys are ascending; month
    names follow calendar order. Buckets are not year-qualified.
    """

    hourly: dict[int, int] = field(default_factory=dict)
    daily: dict[int, int] = field(default_factory=dict)
    weekly: dict[int, int] = field(default_factory=dict)
    monthly: dict[str, int] = field(default_factory=dict)

    @property
    def most_active_hour(self) -> tuple[int, int] | None:
        return first_max(self.hourly)

    @property
    def most_active_day(self) -> tuple[int, int] | None:
        return first_max(self.daily)

    @property
    def most_active_month(self) -> tuple[str, int] | None:
        return first_max(self.monthly)


def analyze_time_patterns(
    events: Iterable[ActivityEvent],
    tz: tzinfo | None = None,
) -> TimeMetrics:
    """Bucket events by hour, weekday, ISO week and month.

    Every event with a timestamp contributes to all four histograms at once.
    Events without a timestamp are skipped.

    Args:
        events: Activity events, expected to span a single year.
        tz: Timezone for wall-clock extraction (process-local if None).

    Returns:
        TimeMetrics with deterministic key ordering.
    """
    hourly: defaultdict[int, int] = defaultdict(int)
    daily: defaultdict[int, int] = defaultdict(int)
    weekly: defaultdict[int, int] = defaultdict(int)
    monthly: defaultdict[str, int] = defaultdict(int)

    for event in events:
        if event.timestamp is None:
            continue

        local = to_local(event.timestamp, tz)
        hourly[local.hour] += 1
        daily[local.isoweekday() % 7] += 1
        weekly[iso_week_number(local.date())] += 1
        monthly[month_name(local)] += 1

    return TimeMetrics(
        hourly=dict(sorted(hourly.items())),
        daily=dict(sorted(daily.items())),
        weekly=dict(sorted(weekly.items())),
        monthly={name: monthly[name] for name in MONTH_NAMES if name in monthly},
    )
