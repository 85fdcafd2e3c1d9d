"""Collection orchestrator.

Fetches one user's (or a GitLab team's) activity from the configured
platforms, normalizes it and runs the analyzers. Platforms, and the
independent GitLab endpoints of one user, are fetched concurrently.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import tzinfo

from year_in_review.analytics import (
    ContributionSummary,
    PlatformSummary,
    TeamMetrics,
    YearSummary,
    analyze_events,
    analyze_streaks,
    analyze_team,
    analyze_time_patterns,
    analyze_work_items,
    summarize_contributions,
    summarize_projects,
)
from year_in_review.analytics.summary import GITHUB, GITLAB
from year_in_review.clients.auth import GitHubAuth, GitLabAuth
from year_in_review.clients.github import GITHUB_API_URL, GitHubClient, GraphQLError
from year_in_review.clients.gitlab import GitLabClient
from year_in_review.clients.http import ForgeClient, ForgeHTTPError
from year_in_review.config import Config, ConfigurationError
from year_in_review.models import ActivityEvent, OwnerId, ProjectRef
from year_in_review.normalize import (
    filter_github_events,
    filter_gitlab_events,
    github_user,
    gitlab_project,
    gitlab_user,
    gitlab_work_item,
)

logger = logging.getLogger(__name__)

GITLAB_PUSH_MARKER = "push"
GITHUB_PUSH_MARKER = "PushEvent"
MAX_CONCURRENT_PROJECT_LOOKUPS = 8


class UserNotFoundError(LookupError):
    """Raised when a configured user does not exist on the platform."""


def gitlab_http_client(config: Config) -> ForgeClient:
    """Create an HTTP client for the configured GitLab instance."""
    return ForgeClient(
        config.gitlab.base_url,
        GitLabAuth(config.gitlab.token),
        timeout=config.api.timeout_seconds,
        max_retries=config.api.max_retries,
    )


def github_http_client(config: Config) -> ForgeClient:
    """Create an HTTP client for the GitHub API."""
    return ForgeClient(
        GITHUB_API_URL,
        GitHubAuth(config.github.token),
        timeout=config.api.timeout_seconds,
        max_retries=config.api.max_retries,
        headers={
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        },
    )


async def resolve_project_names(
    client: GitLabClient,
    project_ids: Iterable[OwnerId | None],
    known: dict[OwnerId, str] | None = None,
) -> dict[OwnerId, str]:
    """Look up display names for project ids not already known.

    Each distinct id is fetched at most once; lookups run concurrently.
    Ids whose lookup fails are left out of the result.

    Args:
        client: GitLab client.
        project_ids: Project ids, possibly repeated or None.
        known: Names already available, e.g. from the membership list.

    Returns:
        Mapping of project id to display name.
    """
    names = dict(known or {})
    missing = [pid for pid in dict.fromkeys(project_ids) if pid is not None and pid not in names]
    if not missing:
        return names

    semaphore = asyncio.Semaphore(MAX_CONCURRENT_PROJECT_LOOKUPS)

    async def lookup(project_id: OwnerId) -> str | None:
        async with semaphore:
            return await client.get_project_name(project_id)

    logger.debug("Resolving names of %d projects", len(missing))
    results = await asyncio.gather(*(lookup(pid) for pid in missing))
    for project_id, name in zip(missing, results, strict=True):
        if name:
            names[project_id] = name
    return names


async def collect_gitlab_summary(
    client: GitLabClient,
    user_ref: OwnerId,
    year: int,
    allowed_projects: Sequence[str] = (),
    tz: tzinfo | None = None,
) -> PlatformSummary:
    """Fetch and analyze one user's GitLab year.

    Args:
        client: GitLab client.
        user_ref: Numeric user id or username.
        year: Calendar year to report on.
        allowed_projects: Optional project name allow-list.
        tz: Timezone for wall-clock analytics (process-local if None).

    Returns:
        PlatformSummary for GitLab.

    Raises:
        UserNotFoundError: If the user does not exist.
        ForgeHTTPError: If the user or event lookup fails.
    """
    raw_user = await client.get_user(user_ref)
    if raw_user is None:
        raise UserNotFoundError(f"GitLab user {user_ref} not found")

    user = gitlab_user(raw_user)
    user_id = raw_user["id"]
    logger.info("Fetching GitLab activity for user %s (id %s), year %d", user.username, user_id, year)

    (
        raw_events,
        raw_projects,
        created_mrs,
        assigned_mrs,
        created_issues,
        assigned_issues,
        reviews,
    ) = await asyncio.gather(
        client.get_events(user_id, year),
        client.get_user_projects(user_id),
        client.get_merge_requests(year, author_id=user_id),
        client.get_merge_requests(year, assignee_id=user_id),
        client.get_issues(year, author_id=user_id),
        client.get_issues(year, assignee_id=user_id),
        client.get_code_reviews(user_id, year, user.username),
    )

    events = filter_gitlab_events(raw_events, year, tz)
    membership = [gitlab_project(raw) for raw in raw_projects if raw.get("id") is not None]
    names = await resolve_project_names(
        client,
        (event.owner_id for event in events),
        known={p.id: p.name for p in membership if p.name},
    )

    event_projects = [
        ProjectRef(id=event.owner_id, name=names.get(event.owner_id))
        for event in events
        if event.owner_id is not None
    ]

    return PlatformSummary(
        platform=GITLAB,
        events=analyze_events(
            events,
            resolver=names.get,
            allowed_projects=allowed_projects,
            push_marker=GITLAB_PUSH_MARKER,
            tz=tz,
        ),
        time_patterns=analyze_time_patterns(events, tz),
        streaks=analyze_streaks(events, tz),
        projects=summarize_projects([*membership, *event_projects]),
        merge_requests=analyze_work_items(gitlab_work_item(raw) for raw in created_mrs),
        issues=analyze_work_items(gitlab_work_item(raw) for raw in created_issues),
        assigned_merge_requests=len(assigned_mrs),
        assigned_issues=len(assigned_issues),
        code_reviews=len(reviews),
        user=user,
    )


async def fetch_contributions(
    client: GitHubClient,
    username: str,
    year: int,
    events: Sequence[ActivityEvent],
) -> ContributionSummary:
    """Contribution calendar via GraphQL, falling back to the event feed."""
    try:
        collection = await client.get_contributions(username, year)
    except GraphQLError as e:
        logger.warning(
            "GraphQL contributions unavailable for %s in %d, falling back to events: %s",
            username,
            year,
            e,
        )
        return summarize_contributions(events)

    contributions = ContributionSummary.from_graphql(collection)
    logger.info("Fetched %d GitHub contributions for %s in %d", contributions.total, username, year)
    return contributions


async def collect_github_summary(
    client: GitHubClient,
    username: str,
    year: int,
    allowed_repos: Sequence[str] = (),
    tz: tzinfo | None = None,
) -> PlatformSummary:
    """Fetch and analyze one user's GitHub year.

    Raises:
        ForgeHTTPError: If the user or event lookup fails.
    """
    logger.info("Fetching GitHub activity for user %s, year %d", username, year)

    raw_user, raw_events, commits = await asyncio.gather(
        client.get_user(username),
        client.get_events(username),
        client.get_commits(username, year, allowed_repos, tz),
    )

    events = filter_github_events(raw_events, year, allowed_repos, tz)
    logger.info("Kept %d GitHub events for %s in %d", len(events), username, year)
    contributions = await fetch_contributions(client, username, year, events)

    repos = [
        ProjectRef(id=event.owner_id, name=str(event.owner_id))
        for event in events
        if event.owner_id is not None
    ]

    return PlatformSummary(
        platform=GITHUB,
        events=analyze_events(events, resolver=str, push_marker=GITHUB_PUSH_MARKER, tz=tz),
        time_patterns=analyze_time_patterns(events, tz),
        streaks=analyze_streaks(events, tz),
        projects=summarize_projects(repos),
        commits=len(commits),
        contributions=contributions,
        user=github_user(raw_user),
    )


async def _gitlab_for(config: Config, user_ref: OwnerId) -> PlatformSummary:
    async with gitlab_http_client(config) as http:
        client = GitLabClient(http, per_page=config.api.per_page, max_pages=config.api.max_pages)
        return await collect_gitlab_summary(
            client,
            user_ref,
            config.year,
            config.gitlab.allowed_projects,
            config.tzinfo,
        )


async def _github_for(config: Config) -> PlatformSummary:
    async with github_http_client(config) as http:
        client = GitHubClient(http, per_page=config.api.per_page)
        return await collect_github_summary(
            client,
            config.github.username,
            config.year,
            config.github.allowed_repos,
            config.tzinfo,
        )


async def _skip() -> None:
    return None


async def collect_year_summary(config: Config) -> YearSummary:
    """Collect a single user's year across every configured platform.

    Raises:
        ConfigurationError: If no platform is configured for a single user.
        UserNotFoundError: If the GitLab user does not exist.
        ForgeHTTPError: If a mandatory request fails.
    """
    use_gitlab = bool(config.gitlab.token and config.gitlab.user_id)
    use_github = config.github.is_configured
    if not use_gitlab and not use_github:
        raise ConfigurationError("No platform is configured for a single-user report")

    gitlab, github = await asyncio.gather(
        _gitlab_for(config, config.gitlab.user_id) if use_gitlab else _skip(),
        _github_for(config) if use_github else _skip(),
    )

    user = gitlab.user if gitlab is not None else (github.user if github is not None else None)
    return YearSummary(
        year=config.year,
        user=user,
        gitlab=gitlab,
        github=github,
        username=user.username if user else None,
    )


async def collect_team(config: Config) -> TeamMetrics:
    """Collect GitLab summaries for every configured team member.

    Members that cannot be found or whose data cannot be fetched are
    skipped with an error log.
    """
    summaries: list[YearSummary] = []
    for username in config.gitlab.team_users:
        logger.info("Processing team member %s", username)
        try:
            gitlab = await _gitlab_for(config, username)
        except (UserNotFoundError, ForgeHTTPError) as e:
            logger.error("Skipping team member %s: %s", username, e)
            continue

        summaries.append(
            YearSummary(year=config.year, user=gitlab.user, gitlab=gitlab, username=username)
        )

    logger.info("Collected %d of %d team members", len(summaries), len(config.gitlab.team_users))
    return analyze_team(config.year, summaries)

