"""Tests for merge request and issue analysis."""

from collections.abc import Callable
from datetime import timedelta

from year_in_review.analytics.work_items import WorkItemMetrics, analyze_work_items
from year_in_review.models import WorkItem, WorkItemState


class TestWorkItemState:
    """Tests for WorkItemState.from_raw."""

    def test_platform_labels(self) -> None:
        """Test GitLab and GitHub state labels map onto the unified states."""
        assert WorkItemState.from_raw("opened") is WorkItemState.OPEN
        assert WorkItemState.from_raw("open") is WorkItemState.OPEN
        assert WorkItemState.from_raw("closed") is WorkItemState.CLOSED
        assert WorkItemState.from_raw("merged") is WorkItemState.MERGED
        assert WorkItemState.from_raw("locked") is WorkItemState.OTHER
        assert WorkItemState.from_raw(None) is WorkItemState.OTHER


class TestAnalyzeWorkItems:
    """Tests for analyze_work_items."""

    def test_empty_input(self) -> None:
        """Test no items yields zero-valued metrics."""
        result = analyze_work_items([])

        assert result == WorkItemMetrics()
        assert result.average_resolution_days == 0

    def test_counts_by_state(self, make_item: Callable[..., WorkItem]) -> None:
        """Test state counts; other states only count toward the total."""
        items = [
            make_item(WorkItemState.MERGED),
            make_item(WorkItemState.OPEN),
            make_item(WorkItemState.OPEN),
            make_item(WorkItemState.CLOSED),
            make_item(WorkItemState.OTHER),
        ]

        result = analyze_work_items(items)

        assert result.total_created == 5
        assert result.merged_count == 1
        assert result.opened_count == 2
        assert result.closed_count == 1
        assert result.merged_count + result.opened_count + result.closed_count <= result.total_created

    def test_average_time_to_merge(self, make_item: Callable[..., WorkItem]) -> None:
        """Test average over merged items with both timestamps."""
        items = [
            make_item(
                WorkItemState.MERGED,
                created_at="2025-01-01T00:00:00Z",
                resolved_at="2025-01-03T00:00:00Z",
            ),
            make_item(
                WorkItemState.MERGED,
                created_at="2025-01-01T00:00:00Z",
                resolved_at="2025-01-05T00:00:00Z",
            ),
        ]

        result = analyze_work_items(items)

        assert result.average_resolution_time == timedelta(days=3)
        assert result.average_resolution_days == 3

    def test_untimed_merged_items_excluded_from_average(
        self, make_item: Callable[..., WorkItem]
    ) -> None:
        """Test merged items without merge time do not dilute the average."""
        items = [
            make_item(
                WorkItemState.MERGED,
                created_at="2025-01-01T00:00:00Z",
                resolved_at="2025-01-02T00:00:00Z",
            ),
            make_item(WorkItemState.MERGED, resolved_at=None),
        ]

        result = analyze_work_items(items)

        assert result.merged_count == 2
        assert result.average_resolution_time == timedelta(days=1)

    def test_average_rounds_half_up(self, make_item: Callable[..., WorkItem]) -> None:
        """Test whole-day rounding of the average."""
        item = make_item(
            WorkItemState.MERGED,
            created_at="2025-01-01T00:00:00Z",
            resolved_at="2025-01-03T12:00:00Z",
        )
        assert analyze_work_items([item]).average_resolution_days == 3

    def test_projects_involved_distinct_in_order(
        self, make_item: Callable[..., WorkItem]
    ) -> None:
        """Test project ids are de-duplicated keeping first-seen order."""
        items = [make_item(owner_id=5), make_item(owner_id=2), make_item(owner_id=5)]
        assert analyze_work_items(items).projects_involved == (5, 2)

    def test_repeated_runs_are_equal(self, make_item: Callable[..., WorkItem]) -> None:
        """Test analyzing the same items twice gives the same metrics."""
        items = [
            make_item(WorkItemState.MERGED, resolved_at="2025-01-03T00:00:00Z", owner_id=1),
            make_item(WorkItemState.MERGED, resolved_at="2025-01-05T00:00:00Z", owner_id=2),
            make_item(WorkItemState.OPEN, owner_id=1),
            make_item(WorkItemState.CLOSED, created_at=None, owner_id=3),
        ]

        first = analyze_work_items(items)
        second = analyze_work_items(items)

        assert first == second
        assert first.average_resolution_days == 3
