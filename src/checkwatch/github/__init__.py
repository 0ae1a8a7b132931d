"""GitHub API client package.

``checks_api`` is imported directly by its users; it depends on the monitor
interfaces and is kept out of this package namespace.
"""

from .auth import AuthProvider, AuthToken, PersonalAccessTokenAuth
from .client import GitHubClient, GitHubClientConfig, GitHubResponse
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
)
from .pagination import AsyncPaginator, LinkHeader, PaginatedResponse
from .rate_limiting import CircuitBreaker, RateLimitInfo, RateLimitManager

__all__ = [
    "AsyncPaginator",
    "AuthProvider",
    "AuthToken",
    "CircuitBreaker",
    "GitHubAuthenticationError",
    "GitHubClient",
    "GitHubClientConfig",
    "GitHubConnectionError",
    "GitHubError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "GitHubResponse",
    "GitHubServerError",
    "GitHubTimeoutError",
    "GitHubValidationError",
    "LinkHeader",
    "PaginatedResponse",
    "PersonalAccessTokenAuth",
    "RateLimitInfo",
    "RateLimitManager",
]
