"""Async HTTP client shared by the GitLab and GitHub clients.

Wraps ``httpx.AsyncClient`` with authentication, retry with exponential
backoff, rate limit handling and page-number pagination.
"""

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from year_in_review import __version__
from year_in_review.clients.auth import TokenAuth

logger = logging.getLogger(__name__)


class RateLimitInfo(BaseModel):
    """Rate limit information from response headers.

    GitHub sends ``x-ratelimit-*`` headers, GitLab sends ``ratelimit-*``.
    """

    limit: int
    remaining: int
    reset: datetime
    used: int = 0

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> Optional["RateLimitInfo"]:
        """Extract rate limit info from response headers.

        Args:
            headers: HTTP response headers.

        Returns:
            RateLimitInfo if headers present, None otherwise.
        """
        for prefix in ("x-ratelimit-", "ratelimit-"):
            if f"{prefix}limit" in headers:
                break
        else:
            return None

        reset_timestamp = int(headers.get(f"{prefix}reset", "0"))
        return cls(
            limit=int(headers.get(f"{prefix}limit", "0")),
            remaining=int(headers.get(f"{prefix}remaining", "0")),
            reset=datetime.fromtimestamp(reset_timestamp, tz=UTC),
            used=int(headers.get(f"{prefix}used", "0")),
        )


@dataclass
class ForgeResponse:
    """API response with parsed data and metadata."""

    status_code: int
    data: Any
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    rate_limit: RateLimitInfo | None = None
    url: str = ""

    @property
    def is_success(self) -> bool:
        """Check if response was successful (2xx status code)."""
        return 200 <= self.status_code < 300

    @property
    def is_rate_limited(self) -> bool:
        """Check if response indicates rate limiting (429 or 403 with rate limit)."""
        return self.status_code == 429 or (
            self.status_code == 403
            and self.rate_limit is not None
            and self.rate_limit.remaining == 0
        )


class ForgeHTTPError(Exception):
    """Raised when a request to GitLab or GitHub fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RateLimitExceeded(ForgeHTTPError):
    """Raised when rate limit is exceeded."""

    def __init__(self, reset_at: datetime) -> None:
        self.reset_at = reset_at
        super().__init__(f"Rate limit exceeded. Resets at {reset_at.isoformat()}", 429)


def retry_after_seconds(value: str, now: datetime | None = None) -> int | None:
    """Parse a ``Retry-After`` value given as delay seconds or an HTTP-date.

    Returns:
        Non-negative seconds to wait, or None if the value cannot be parsed.
    """
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)
    delta = retry_at - (now or datetime.now(UTC))
    return max(int(delta.total_seconds()) + 1, 0)


def parse_link_header(link_header: str | None) -> dict[str, str]:
    """Parse a Link header into a mapping of rel type to URL.

    Args:
        link_header: Link header value, e.g. ``<url>; rel="next", <url>; rel="last"``.

    Returns:
        Dict mapping rel type to URL.
    """
    if not link_header:
        return {}

    links = {}
    for part in link_header.split(","):
        match = re.match(r'<([^>]+)>;\s*rel="([^"]+)"', part.strip())
        if match:
            url, rel = match.groups()
            links[rel] = url
    return links


class ForgeClient:
    """Async HTTP client for a code-hosting REST API.

    Features:
    - Token authentication via a TokenAuth instance
    - Retry logic with exponential backoff on 5xx, timeouts and network errors
    - Rate limit detection and waiting
    - Page-number pagination
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_RETRIES = 3
    INITIAL_BACKOFF = 1.0
    BACKOFF_MULTIPLIER = 2.0
    MAX_RATE_LIMIT_WAIT = 300

    def __init__(
        self,
        base_url: str,
        auth: TokenAuth,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``https://gitlab.com/api/v4``.
            auth: Token authentication for the platform.
            timeout: Request timeout in seconds.
            max_retries: Maximum number of retries for failed requests.
            headers: Extra headers sent with every request.
        """
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeout = timeout
        self._max_retries = max_retries
        self._extra_headers = headers or {}
        self._client: httpx.AsyncClient | None = None
        self.requests_made = 0

    def _get_headers(self) -> dict[str, str]:
        headers = {"User-Agent": f"year-in-review/{__version__}"}
        headers.update(self._extra_headers)
        headers.update(self._auth.get_authorization_header())
        return headers

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._get_headers(),
                follow_redirects=True,
            )
        return self._client

    def _rate_limit_wait(self, response: httpx.Response, retry_count: int) -> int | None:
        """Seconds to wait before retrying a rate-limited response.

        Raises:
            RateLimitExceeded: If the reset is too far away or retries are exhausted.
        """
        retry_after = response.headers.get("retry-after")
        if retry_after:
            wait_seconds = retry_after_seconds(retry_after)
            if wait_seconds is None:
                logger.warning("Unparseable Retry-After header %r, backing off", retry_after)
                wait_seconds = int(self.INITIAL_BACKOFF * (self.BACKOFF_MULTIPLIER**retry_count))
            if retry_count >= self._max_retries or wait_seconds > self.MAX_RATE_LIMIT_WAIT:
                raise RateLimitExceeded(reset_at=datetime.now(UTC) + timedelta(seconds=wait_seconds))

            logger.warning("Secondary rate limit hit. Retry after %d seconds", wait_seconds)
            return wait_seconds

        rate_limit = RateLimitInfo.from_headers(response.headers)
        if rate_limit and rate_limit.remaining == 0:
            wait_seconds = int((rate_limit.reset - datetime.now(UTC)).total_seconds()) + 1
            if retry_count >= self._max_retries or wait_seconds > self.MAX_RATE_LIMIT_WAIT:
                raise RateLimitExceeded(reset_at=rate_limit.reset)

            logger.warning(
                "Primary rate limit exhausted. Waiting %d seconds until %s",
                wait_seconds,
                rate_limit.reset.isoformat(),
            )
            return max(wait_seconds, 0)

        return None

    async def _retry_request(
        self,
        method: str,
        path: str,
        retry_count: int,
        **kwargs: Any,
    ) -> httpx.Response:
        if retry_count >= self._max_retries:
            raise ForgeHTTPError(f"Max retries ({self._max_retries}) exceeded for {method} {path}")

        wait_seconds = self.INITIAL_BACKOFF * (self.BACKOFF_MULTIPLIER**retry_count)
        logger.debug(
            "Retry %d/%d for %s %s after %.1fs",
            retry_count + 1,
            self._max_retries,
            method,
            path,
            wait_seconds,
        )
        await asyncio.sleep(wait_seconds)

        return await self._do_request(method, path, retry_count + 1, **kwargs)

    async def _do_request(
        self,
        method: str,
        path: str,
        retry_count: int = 0,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute HTTP request with retry logic.

        Raises:
            ForgeHTTPError: On request failure after retries.
            RateLimitExceeded: If rate limit exceeded.
        """
        client = await self._ensure_client()

        logger.debug("%s %s (attempt %d)", method, path, retry_count + 1)

        try:
            response = await client.request(method, path, **kwargs)
            self.requests_made += 1

            if response.status_code in (429, 403):
                wait_seconds = self._rate_limit_wait(response, retry_count)
                if wait_seconds is not None:
                    await asyncio.sleep(wait_seconds)
                    return await self._do_request(method, path, retry_count + 1, **kwargs)

            if 500 <= response.status_code < 600:
                logger.warning("Server error %d for %s %s", response.status_code, method, path)
                return await self._retry_request(method, path, retry_count, **kwargs)

            return response

        except httpx.TimeoutException as e:
            logger.warning("Timeout for %s %s", method, path)
            if retry_count < self._max_retries:
                return await self._retry_request(method, path, retry_count, **kwargs)
            raise ForgeHTTPError(f"Request timeout: {e}") from e

        except httpx.NetworkError as e:
            logger.warning("Network error for %s %s: %s", method, path, e)
            if retry_count < self._max_retries:
                return await self._retry_request(method, path, retry_count, **kwargs)
            raise ForgeHTTPError(f"Network error: {e}") from e

    async def request(self, method: str, path: str, **kwargs: Any) -> ForgeResponse:
        """Make an HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.).
            path: API path relative to the base URL, or an absolute URL.
            **kwargs: Additional arguments passed to httpx (params, json, etc.).

        Returns:
            ForgeResponse with parsed data and metadata. Non-2xx responses are
            returned, not raised; see get_json for the strict variant.
        """
        response = await self._do_request(method, path, **kwargs)

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError as e:
                logger.warning("Failed to parse JSON response: %s", e)
                data = response.text

        return ForgeResponse(
            status_code=response.status_code,
            data=data,
            headers=response.headers,
            rate_limit=RateLimitInfo.from_headers(response.headers),
            url=str(response.url),
        )

    async def get(self, path: str, **kwargs: Any) -> ForgeResponse:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> ForgeResponse:
        return await self.request("POST", path, **kwargs)

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a resource and return its JSON body.

        Raises:
            ForgeHTTPError: If the response is not successful.
        """
        response = await self.get(path, params=params)
        if not response.is_success:
            logger.error("Request failed: GET %s - status %d", path, response.status_code)
            raise ForgeHTTPError(
                f"GET {path} failed with status {response.status_code}",
                response.status_code,
            )
        return response.data

    async def paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        per_page: int = 100,
        max_pages: int = 100,
    ) -> AsyncIterator[list[Any]]:
        """Iterate over pages of a list endpoint.

        Pages are requested sequentially with ``page``/``per_page`` query
        parameters. Iteration stops on an empty or short page, when a Link
        header no longer advertises a next page, or after ``max_pages``.

        Yields:
            The items of each page.

        Raises:
            ForgeHTTPError: If a page request fails.
        """
        page = 1
        while page <= max_pages:
            page_params = {**(params or {}), "page": page, "per_page": per_page}
            response = await self.get(path, params=page_params)

            if not response.is_success:
                logger.error(
                    "Request failed: GET %s page %d - status %d",
                    path,
                    page,
                    response.status_code,
                )
                raise ForgeHTTPError(
                    f"GET {path} page {page} failed with status {response.status_code}",
                    response.status_code,
                )

            items = response.data if isinstance(response.data, list) else []
            if not items:
                return

            yield items

            link_header = response.headers.get("link")
            if len(items) < per_page:
                return
            if link_header is not None and "next" not in parse_link_header(link_header):
                return

            page += 1
            logger.debug("Following pagination to page %d of %s", page, path)

        logger.warning("Stopped paginating %s after %d pages", path, max_pages)

    async def fetch_all(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        per_page: int = 100,
        max_pages: int = 100,
    ) -> list[Any]:
        """Collect every item of a paginated endpoint into one list."""
        results: list[Any] = []
        async for items in self.paginate(path, params, per_page, max_pages):
            results.extend(items)
        return results

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ForgeClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
