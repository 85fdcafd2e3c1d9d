"""GitLab REST v4 client.

High-level methods for the endpoints a year in review needs. Endpoints whose
data only enriches the report (projects, merge requests, issues, reviews)
log failures and return an empty list; user and event lookups propagate
errors.
"""

import logging
from typing import Any

from year_in_review.analytics.contributions import is_review_candidate
from year_in_review.clients.http import ForgeClient, ForgeHTTPError
from year_in_review.models import OwnerId
from year_in_review.normalize import project_display_name

logger = logging.getLogger(__name__)


def year_window(year: int) -> tuple[str, str]:
    """Exclusive ``after``/``before`` dates around ``year`` for the events API.

    GitLab compares these dates in UTC, so the window is one day wider than
    the year on each side; callers trim events to the local year.
    """
    return f"{year - 1}-12-30", f"{year + 1}-01-02"


def year_range(year: int) -> tuple[str, str]:
    """Inclusive ISO 8601 datetimes spanning ``year`` for ``*_after``/``*_before`` filters."""
    return f"{year}-01-01T00:00:00Z", f"{year}-12-31T23:59:59Z"


class GitLabClient:
    """GitLab API client.

    Wraps a ForgeClient configured with the GitLab base URL and a
    ``PRIVATE-TOKEN`` header.
    """

    def __init__(
        self,
        http_client: ForgeClient,
        per_page: int = 100,
        max_pages: int = 100,
    ) -> None:
        """Initialize GitLab client.

        Args:
            http_client: ForgeClient pointed at ``{base_url}`` (e.g. ``https://gitlab.com/api/v4``).
            per_page: Page size for list endpoints.
            max_pages: Page cap per list endpoint.
        """
        self._http = http_client
        self._per_page = per_page
        self._max_pages = max_pages

    async def _fetch_all(self, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return await self._http.fetch_all(
            path,
            params,
            per_page=self._per_page,
            max_pages=self._max_pages,
        )

    async def _fetch_optional(
        self,
        what: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        try:
            items = await self._fetch_all(path, params)
        except ForgeHTTPError as e:
            logger.warning("Could not fetch %s: %s", what, e)
            return []
        logger.info("Fetched %d %s", len(items), what)
        return items

    async def get_user(self, user_ref: OwnerId) -> dict[str, Any] | None:
        """Look up a user by numeric id or username.

        Args:
            user_ref: Numeric user id, or a username.

        Returns:
            User object, or None if no user matches.

        Raises:
            ForgeHTTPError: If the request fails.
        """
        ref = str(user_ref)
        if ref.isdigit():
            response = await self._http.get(f"/users/{ref}")
            if response.status_code == 404:
                return None
            if not response.is_success:
                raise ForgeHTTPError(
                    f"User lookup for {ref} failed with status {response.status_code}",
                    response.status_code,
                )
            return response.data

        users = await self._http.get_json("/users", params={"username": ref})
        if users:
            return users[0]

        logger.warning("No GitLab user found with username %s", ref)
        return None

    async def get_events(self, user_id: OwnerId, year: int) -> list[dict[str, Any]]:
        """Fetch all events of a user within ``year``.

        Raises:
            ForgeHTTPError: If any page request fails.
        """
        after, before = year_window(year)
        events = await self._fetch_all(
            f"/users/{user_id}/events",
            {"after": after, "before": before},
        )
        logger.info("Fetched %d total events for user %s", len(events), user_id)
        return events

    async def get_user_projects(self, user_id: OwnerId) -> list[dict[str, Any]]:
        """Fetch projects the user is a member of."""
        return await self._fetch_optional(
            f"projects for user {user_id}",
            f"/users/{user_id}/projects",
            {"membership": "true"},
        )

    async def get_merge_requests(
        self,
        year: int,
        author_id: OwnerId | None = None,
        assignee_id: OwnerId | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch merge requests created in ``year`` by or assigned to a user."""
        return await self._fetch_optional(
            "merge requests",
            "/merge_requests",
            self._work_item_params(year, author_id, assignee_id),
        )

    async def get_issues(
        self,
        year: int,
        author_id: OwnerId | None = None,
        assignee_id: OwnerId | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch issues created in ``year`` by or assigned to a user."""
        return await self._fetch_optional(
            "issues",
            "/issues",
            self._work_item_params(year, author_id, assignee_id),
        )

    @staticmethod
    def _work_item_params(
        year: int,
        author_id: OwnerId | None,
        assignee_id: OwnerId | None,
    ) -> dict[str, Any]:
        created_after, created_before = year_range(year)
        params: dict[str, Any] = {
            "scope": "all",
            "created_after": created_after,
            "created_before": created_before,
        }
        if author_id is not None:
            params["author_id"] = author_id
        if assignee_id is not None:
            params["assignee_id"] = assignee_id
        return params

    async def get_code_reviews(
        self,
        user_id: OwnerId,
        year: int,
        username: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch merge requests updated in ``year`` that the user likely reviewed.

        See is_review_candidate for the participation heuristic.
        """
        updated_after, updated_before = year_range(year)
        merge_requests = await self._fetch_optional(
            "merge requests for review",
            "/merge_requests",
            {
                "scope": "all",
                "updated_after": updated_after,
                "updated_before": updated_before,
            },
        )
        reviews = [mr for mr in merge_requests if is_review_candidate(mr, user_id, username)]
        logger.info("Found %d merge requests reviewed by user %s", len(reviews), user_id)
        return reviews

    async def get_project_name(self, project_id: OwnerId) -> str | None:
        """Fetch the display name of a project.

        Returns:
            Project name (or path with namespace), None if unavailable.
        """
        try:
            response = await self._http.get(f"/projects/{project_id}")
        except ForgeHTTPError as e:
            logger.warning("Could not fetch project %s: %s", project_id, e)
            return None

        if not response.is_success or not isinstance(response.data, dict):
            logger.warning(
                "Could not fetch project %s: status %d",
                project_id,
                response.status_code,
            )
            return None

        return project_display_name(response.data)
