"""Lifecycle counts and merge latency for merge requests and issues."""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import timedelta

from year_in_review.models import OwnerId, WorkItem, WorkItemState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkItemMetrics:
    """Counts by lifecycle state plus average time to merge.

    Items in a state other than open, closed or merged only contribute to
    ``total_created`` and ``projects_involved``.
    """

    total_created: int = 0
    merged_count: int = 0
    opened_count: int = 0
    closed_count: int = 0
    average_resolution_time: timedelta = field(default_factory=timedelta)
    projects_involved: tuple[OwnerId, ...] = ()

    @property
    def average_resolution_days(self) -> int:
        """Average resolution time in whole days, rounded half up."""
        return math.floor(self.average_resolution_time / timedelta(days=1) + 0.5)


def analyze_work_items(items: Iterable[WorkItem]) -> WorkItemMetrics:
    """Classify work items by state and measure time to merge.

    The average is taken over merged items that carry both a creation and a
    resolution timestamp, not over every merged item.

    Args:
        items: Merge requests, pull requests or issues.

    Returns:
        WorkItemMetrics; zero-valued for an empty input.
    """
    total = 0
    merged = opened = closed = 0
    measured = 0
    total_duration = timedelta()
    projects: dict[OwnerId, None] = {}

    for item in items:
        total += 1
        if item.owner_id is not None:
            projects.setdefault(item.owner_id, None)

        if item.state is WorkItemState.MERGED:
            merged += 1
            if item.created_at is not None and item.resolved_at is not None:
                total_duration += item.resolved_at - item.created_at
                measured += 1
        elif item.state is WorkItemState.OPEN:
            opened += 1
        elif item.state is WorkItemState.CLOSED:
            closed += 1

    if merged > measured:
        logger.debug("%d merged items lack timestamps and are not timed", merged - measured)

    return WorkItemMetrics(
        total_created=total,
        merged_count=merged,
        opened_count=opened,
        closed_count=closed,
        average_resolution_time=total_duration / measured if measured else timedelta(),
        projects_involved=tuple(projects),
    )
