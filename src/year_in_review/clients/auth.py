"""Token handling for GitLab and GitHub.

Tokens are supplied through configuration or the environment; this module
only validates them and turns them into request headers.
"""

import logging
import os
import re
from typing import ClassVar

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when a token is missing or invalid."""


class TokenAuth:
    """Base class for personal-access-token authentication.

    Loads the token from:
    1. Explicit token parameter
    2. The platform's environment variable (``ENV_VAR``)
    """

    PLATFORM: ClassVar[str] = ""
    ENV_VAR: ClassVar[str] = ""

    def __init__(self, token: str | None = None) -> None:
        """Initialize authentication.

        Args:
            token: Access token. If None, loads from ``ENV_VAR``.

        Raises:
            AuthenticationError: If the token is missing or invalid.
        """
        if token:
            loaded_token, source = token, "explicit parameter"
        else:
            loaded_token, source = os.environ.get(self.ENV_VAR, ""), f"{self.ENV_VAR} environment variable"

        if not loaded_token:
            raise AuthenticationError(
                f"{self.PLATFORM} token not found. Set {self.ENV_VAR} or pass the token explicitly."
            )

        logger.debug("Using %s token from %s", self.PLATFORM, source)
        self._token = loaded_token.strip()
        self._validate_token()

    def _validate_token(self) -> None:
        if not self._token:
            raise AuthenticationError("Token is empty")

    @property
    def token(self) -> str:
        return self._token

    def get_authorization_header(self) -> dict[str, str]:
        """Get the authentication header for API requests."""
        raise NotImplementedError


class GitHubAuth(TokenAuth):
    """GitHub token authentication.

    Token prefix formats:
    - ghp_: Personal access token (classic)
    - gho_: OAuth access token
    - ghu_: User-to-server token
    - ghs_: Server-to-server token
    - github_pat_: Fine-grained personal access token
    - Classic tokens: 40 character hex string (no prefix)
    """

    PLATFORM = "GitHub"
    ENV_VAR = "GITHUB_TOKEN"

    VALID_PREFIXES = ("ghp_", "gho_", "ghu_", "ghs_", "github_pat_")
    CLASSIC_TOKEN_PATTERN = re.compile(r"^[a-f0-9]{40}$")

    def _validate_token(self) -> None:
        """Validate token format.

        Raises:
            AuthenticationError: If token format is invalid.
        """
        super()._validate_token()
        token = self._token

        has_valid_prefix = token.startswith(self.VALID_PREFIXES)
        is_classic = bool(self.CLASSIC_TOKEN_PATTERN.match(token))

        if not has_valid_prefix and not is_classic:
            raise AuthenticationError(
                f"Invalid token format. Expected prefix {self.VALID_PREFIXES} "
                "or 40-character hex string (classic token)"
            )

        if has_valid_prefix and len(token) < 20:
            raise AuthenticationError("Token appears too short to be valid")

    def get_authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"token {self._token}"}


class GitLabAuth(TokenAuth):
    """GitLab token authentication.

    Self-managed instances issue tokens in several historical formats, so
    only emptiness is checked.
    """

    PLATFORM = "GitLab"
    ENV_VAR = "GITLAB_TOKEN"

    def get_authorization_header(self) -> dict[str, str]:
        return {"PRIVATE-TOKEN": self._token}
