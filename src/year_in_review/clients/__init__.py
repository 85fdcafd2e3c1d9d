"""HTTP clients for the GitLab and GitHub APIs."""

from year_in_review.clients.auth import AuthenticationError, GitHubAuth, GitLabAuth
from year_in_review.clients.github import GitHubClient, GraphQLError
from year_in_review.clients.gitlab import GitLabClient
from year_in_review.clients.http import ForgeClient, ForgeHTTPError, RateLimitExceeded

__all__ = [
    "AuthenticationError",
    "ForgeClient",
    "ForgeHTTPError",
    "GitHubAuth",
    "GitHubClient",
    "GitLabAuth",
    "GitLabClient",
    "GraphQLError",
    "RateLimitExceeded",
]
