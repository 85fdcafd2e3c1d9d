"""Tests for merged summaries and team rollups."""

from year_in_review.analytics.contributions import ProjectsSummary
from year_in_review.analytics.events import EventMetrics, ProjectContribution, ProjectCount
from year_in_review.analytics.summary import (
    PlatformSummary,
    UserSummary,
    YearSummary,
    platform_label,
)
from year_in_review.analytics.team import UserActivity, analyze_team


def platform(name: str, events: int, projects: tuple[str, ...] = ()) -> PlatformSummary:
    contributions = {p: ProjectContribution(total=events, other_count=events) for p in projects}
    return PlatformSummary(
        platform=name,
        events=EventMetrics(total_events=events, per_project_contribution=contributions),
        projects=ProjectsSummary(total=len(projects), names=projects),
    )


class TestYearSummary:
    """Tests for YearSummary."""

    def test_totals_across_platforms(self) -> None:
        """Test overall totals sum both platforms."""
        summary = YearSummary(
            year=2025,
            gitlab=platform("gitlab", 10, ("core", "docs")),
            github=platform("github", 5, ("ada/engine",)),
        )

        assert summary.total_activities == 15
        assert summary.total_projects == 3

    def test_display_name_prefers_full_name(self) -> None:
        """Test the display name falls back from name to username."""
        assert YearSummary(2025, user=UserSummary(name="Ada")).display_name == "Ada"
        assert YearSummary(2025, user=UserSummary(username="ada")).display_name == "ada"
        assert YearSummary(2025, username="octo").display_name == "octo"
        assert YearSummary(2025).display_name == "Unknown"

    def test_to_dict_includes_overall(self) -> None:
        """Test plain-data export carries overall totals."""
        data = YearSummary(year=2025, gitlab=platform("gitlab", 4)).to_dict()

        assert data["year"] == 2025
        assert data["overall"] == {"total_activities": 4, "total_projects": 0}
        assert data["gitlab"]["events"]["total_events"] == 4
        assert data["github"] is None


class TestPlatformLabel:
    """Tests for platform_label."""

    def test_both_platforms_active(self) -> None:
        """Test activity on both platforms yields the combined label."""
        summary = YearSummary(2025, gitlab=platform("gitlab", 1), github=platform("github", 1))
        assert platform_label(summary) == "all-platforms"

    def test_github_only(self) -> None:
        """Test GitHub-only activity yields the github label."""
        summary = YearSummary(2025, gitlab=platform("gitlab", 0), github=platform("github", 3))
        assert platform_label(summary) == "github"

    def test_defaults_to_gitlab(self) -> None:
        """Test no activity at all still yields the gitlab label."""
        assert platform_label(YearSummary(2025)) == "gitlab"


class TestAnalyzeTeam:
    """Tests for analyze_team."""

    def test_rollup(self) -> None:
        """Test totals, user ranking and project ranking across members."""
        members = [
            YearSummary(2025, user=UserSummary(name="Ada"), gitlab=platform("gitlab", 3, ("core",))),
            YearSummary(
                2025,
                user=UserSummary(name="Grace"),
                gitlab=platform("gitlab", 8, ("core", "infra")),
            ),
        ]

        result = analyze_team(2025, members)

        assert result.member_count == 2
        assert result.total_activities == 11
        assert result.total_projects == 2
        assert result.most_active_users == [UserActivity("Grace", 8), UserActivity("Ada", 3)]
        assert result.top_projects == [ProjectCount("core", 11), ProjectCount("infra", 8)]

    def test_members_without_gitlab(self) -> None:
        """Test members lacking GitLab data rank with zero activity."""
        members = [
            YearSummary(2025, username="octo", github=platform("github", 20)),
            YearSummary(2025, username="ada", gitlab=platform("gitlab", 2, ("core",))),
        ]

        result = analyze_team(2025, members)

        assert result.total_activities == 22
        assert result.most_active_users == [UserActivity("ada", 2), UserActivity("octo", 0)]

    def test_user_ranking_capped_at_five(self) -> None:
        """Test only the five most active users are listed."""
        members = [
            YearSummary(2025, username=f"user{i}", gitlab=platform("gitlab", i)) for i in range(7)
        ]

        result = analyze_team(2025, members)

        assert [u.name for u in result.most_active_users] == [
            "user6",
            "user5",
            "user4",
            "user3",
            "user2",
        ]

    def test_empty_team(self) -> None:
        """Test an empty team yields zero totals."""
        result = analyze_team(2025, [])

        assert result.member_count == 0
        assert result.total_activities == 0
        assert result.most_active_users == []
        assert result.top_projects == []
