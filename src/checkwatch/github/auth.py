"""Authentication providers for the GitHub API client."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..models.repository import Account
from .exceptions import GitHubAuthenticationError


@dataclass
class AuthToken:
    """Authentication token with metadata."""

    token: str
    token_type: str = "Bearer"
    expires_at: int | None = None

    @property
    def is_expired(self) -> bool:
        """Check if token is expired."""
        if self.expires_at is None:
            return False
        return time.time() >= self.expires_at

    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}


class AuthProvider(ABC):
    """Source of the token attached to every API request."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get authentication token."""


class PersonalAccessTokenAuth(AuthProvider):
    """Personal access token (or OAuth token) authentication."""

    def __init__(self, token: str):
        """Initialize token authentication.

        Args:
            token: GitHub personal access token

        Raises:
            GitHubAuthenticationError: If the token is empty
        """
        if not token or not token.strip():
            raise GitHubAuthenticationError("Personal Access Token is required")
        self._token = AuthToken(token=token.strip(), token_type="token")  # nosec B106

    @classmethod
    def from_account(cls, account: Account) -> "PersonalAccessTokenAuth":
        """Create an auth provider from an account's stored token."""
        return cls(account.token)

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        return self._token
