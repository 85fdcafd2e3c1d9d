"""Longest run of consecutive active days."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, tzinfo

from year_in_review.analytics.calendar import local_date
from year_in_review.models import ActivityEvent


@dataclass(frozen=True)
class StreakMetrics:
    """Longest activity streak and number of active days."""

    max_streak: int = 0
    max_streak_start: str | None = None
    max_streak_end: str | None = None
    total_active_days: int = 0


def analyze_streaks(
    events: Iterable[ActivityEvent],
    tz: tzinfo | None = None,
) -> StreakMetrics:
    """Find the longest run of consecutive calendar days with activity.

    Each timestamp is projected onto its local calendar date and duplicates
    collapse, so ten pushes on one day count as a single active day. The
    streak is purely historical: a run ending on the last active date is not
    treated as ongoing.

    Args:
        events: Activity events. Events without a timestamp are ignored.
        tz: Timezone used to derive calendar dates (process-local if None).

    Returns:
        StreakMetrics; all zero/None for an empty input.
    """
    active_dates: list[date] = sorted(
        {local_date(event.timestamp, tz) for event in events if event.timestamp is not None}
    )

    if not active_dates:
        return StreakMetrics()

    max_streak = 0
    max_start: date | None = None
    max_end: date | None = None

    current = 1
    current_start = active_dates[0]

    for previous, day in zip(active_dates, active_dates[1:], strict=False):
        gap = (day - previous).days
        if gap == 1:
            current += 1
            continue

        if current > max_streak:
            max_streak, max_start, max_end = current, current_start, previous
        current = 1
        current_start = day

    if current > max_streak:
        max_streak, max_start, max_end = current, current_start, active_dates[-1]

    return StreakMetrics(
        max_streak=max_streak,
        max_streak_start=max_start.isoformat() if max_start else None,
        max_streak_end=max_end.isoformat() if max_end else None,
        total_active_days=len(active_dates),
    )
