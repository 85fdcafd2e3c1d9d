"""GitHub REST v3 and GraphQL client.

REST covers the event feed, user profile, repositories and commits; the
GraphQL API provides the contribution calendar.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, tzinfo
from typing import Any, cast

from year_in_review.analytics.calendar import parse_timestamp
from year_in_review.clients.http import ForgeClient, ForgeHTTPError
from year_in_review.normalize import in_year

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

EVENTS_MAX_PAGES = 50
REPOS_MAX_PAGES = 20
COMMITS_MAX_PAGES = 20


class GraphQLError(Exception):
    """Raised when GraphQL query returns errors."""

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        self.errors = errors
        messages = [err.get("message", "Unknown error") for err in errors]
        super().__init__(f"GraphQL errors: {'; '.join(messages)}")


CONTRIBUTIONS_QUERY = """
query($username: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $username) {
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            date
            contributionCount
            weekday
          }
        }
      }
      totalCommitContributions
      totalIssueContributions
      totalPullRequestContributions
      totalPullRequestReviewContributions
      totalRepositoryContributions
    }
  }
}
"""


class GitHubClient:
    """GitHub API client.

    Wraps a ForgeClient configured with ``https://api.github.com`` and an
    ``Authorization: token`` header.
    """

    GRAPHQL_ENDPOINT = "/graphql"

    def __init__(self, http_client: ForgeClient, per_page: int = 100) -> None:
        """Initialize GitHub client.

        Args:
            http_client: ForgeClient for HTTP requests.
            per_page: Page size for list endpoints.
        """
        self._http = http_client
        self._per_page = per_page

    async def get_user(self, username: str) -> dict[str, Any]:
        """Fetch a user's public profile.

        Raises:
            ForgeHTTPError: If the request fails.
        """
        return cast("dict[str, Any]", await self._http.get_json(f"/users/{username}"))

    async def get_events(self, username: str) -> list[dict[str, Any]]:
        """Fetch the user's public event feed.

        The feed has no date filter and only reaches back a limited distance;
        callers filter by year (see normalize.filter_github_events).

        Raises:
            ForgeHTTPError: If a page request fails.
        """
        events = await self._http.fetch_all(
            f"/users/{username}/events",
            per_page=self._per_page,
            max_pages=EVENTS_MAX_PAGES,
        )
        logger.info("Fetched %d GitHub events for user %s", len(events), username)
        return events

    async def get_repos(
        self,
        username: str,
        allowed_repos: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        """Fetch repositories owned by the user.

        Args:
            username: GitHub login.
            allowed_repos: Optional allow-list matched against ``name`` or
                ``full_name``.

        Returns:
            Repository objects, empty on failure.
        """
        try:
            repos = await self._http.fetch_all(
                f"/users/{username}/repos",
                {"type": "owner", "sort": "updated", "direction": "desc"},
                per_page=self._per_page,
                max_pages=REPOS_MAX_PAGES,
            )
        except ForgeHTTPError as e:
            logger.warning("Could not fetch GitHub repositories for %s: %s", username, e)
            return []

        if allowed_repos:
            filtered = [
                repo
                for repo in repos
                if repo.get("name") in allowed_repos or repo.get("full_name") in allowed_repos
            ]
            logger.info(
                "Filtered repositories from %d to %d based on allowed list",
                len(repos),
                len(filtered),
            )
            return filtered

        logger.info("Fetched %d GitHub repositories for user %s", len(repos), username)
        return repos

    async def get_commits(
        self,
        username: str,
        year: int,
        allowed_repos: Sequence[str] = (),
        tz: tzinfo | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch the user's commits of ``year`` across their own repositories.

        Repositories whose commits cannot be listed (empty repositories
        answer 409, for instance) are skipped.
        """
        commits: list[dict[str, Any]] = []
        for repo in await self.get_repos(username, allowed_repos):
            full_name = repo.get("full_name") or f"{username}/{repo.get('name')}"
            try:
                repo_commits = await self._http.fetch_all(
                    f"/repos/{full_name}/commits",
                    {"author": username},
                    per_page=self._per_page,
                    max_pages=COMMITS_MAX_PAGES,
                )
            except ForgeHTTPError as e:
                logger.debug("Could not fetch commits for %s: %s", full_name, e)
                continue

            commits.extend(c for c in repo_commits if in_year(commit_date(c), year, tz))

        logger.info("Fetched %d GitHub commits for user %s in %d", len(commits), username, year)
        return commits

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute a GraphQL query.

        Args:
            query: GraphQL query string.
            variables: Optional query variables.

        Returns:
            GraphQL response data payload.

        Raises:
            GraphQLError: If the request fails or the response contains errors.
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = await self._http.post(self.GRAPHQL_ENDPOINT, json=payload)
        except ForgeHTTPError as e:
            raise GraphQLError([{"message": str(e)}]) from e

        if not response.is_success:
            logger.error("GraphQL request failed: status=%d", response.status_code)
            raise GraphQLError([{"message": f"HTTP {response.status_code}"}])

        if not isinstance(response.data, dict):
            raise GraphQLError([{"message": "Invalid GraphQL response format"}])

        if "errors" in response.data:
            errors = response.data["errors"]
            logger.error("GraphQL errors: %s", errors)
            raise GraphQLError(errors)

        data = response.data.get("data")
        if data is None:
            raise GraphQLError([{"message": "Missing data in GraphQL response"}])

        return cast("dict[str, Any]", data)

    async def get_contributions(self, username: str, year: int) -> dict[str, Any]:
        """Fetch the ``contributionsCollection`` of ``year``.

        Returns:
            The raw collection (see ContributionSummary.from_graphql).

        Raises:
            GraphQLError: If the query fails or the user is unknown.
        """
        data = await self.execute(
            CONTRIBUTIONS_QUERY,
            {
                "username": username,
                "from": f"{year}-01-01T00:00:00Z",
                "to": f"{year}-12-31T23:59:59Z",
            },
        )
        user = data.get("user")
        if not user or not user.get("contributionsCollection"):
            raise GraphQLError([{"message": f"No contribution data for user {username}"}])

        return cast("dict[str, Any]", user["contributionsCollection"])


def commit_date(commit: dict[str, Any]) -> datetime | None:
    """Authored date of a REST commit object, or None."""
    author = (commit.get("commit") or {}).get("author") or {}
    return parse_timestamp(author.get("date"))
