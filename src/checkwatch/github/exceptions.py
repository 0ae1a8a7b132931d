"""Exceptions raised by the GitHub API client."""

from typing import Any


class GitHubError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        """Initialize GitHub error.

        Args:
            message: Error message
            status_code: HTTP status code, if a response was received
            response_data: Decoded error body returned by GitHub
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}


class GitHubAuthenticationError(GitHubError):
    """Raised when the token is missing, invalid or lacks access."""


class GitHubRateLimitError(GitHubError):
    """Raised when the API rate limit is exhausted or nearly so."""

    def __init__(
        self,
        message: str,
        reset_time: int | None = None,
        remaining: int = 0,
        limit: int = 0,
    ):
        """Initialize rate limit error.

        Args:
            message: Error message
            reset_time: Unix timestamp when the limit resets
            remaining: Remaining API calls
            limit: Total API calls allowed in the window
        """
        super().__init__(message, status_code=403)
        self.reset_time = reset_time
        self.remaining = remaining
        self.limit = limit


class GitHubNotFoundError(GitHubError):
    """Raised when a repository, ref or commit does not exist."""


class GitHubValidationError(GitHubError):
    """Raised when GitHub rejects request parameters (HTTP 422)."""


class GitHubServerError(GitHubError):
    """Raised when GitHub returns a 5xx response."""


class GitHubConnectionError(GitHubError):
    """Raised when GitHub cannot be reached."""


class GitHubTimeoutError(GitHubError):
    """Raised when a request to GitHub times out."""
