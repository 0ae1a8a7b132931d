"""
Unit tests for GitHub authentication module.

Why: Every request of an account must carry its token in the header format
     GitHub accepts for personal access tokens.

What: Tests AuthToken expiry and header rendering, and PersonalAccessTokenAuth
      validation and construction from an Account.

How: Uses literal tokens and patches time for expiry checks.
"""

from unittest.mock import patch

import pytest

from checkwatch.github.auth import AuthToken, PersonalAccessTokenAuth
from checkwatch.github.exceptions import GitHubAuthenticationError
from tests.fixtures.monitor import AccountFactory


class TestAuthToken:
    """Test AuthToken data class."""

    def test_auth_token_header(self) -> None:
        """Test the token renders as an Authorization header."""
        token = AuthToken(token="abc", token_type="token")

        assert token.to_header() == {"Authorization": "token abc"}

    def test_token_without_expiry_never_expires(self) -> None:
        """Test a token without expiry is always valid."""
        assert not AuthToken(token="abc").is_expired

    def test_token_expiry(self) -> None:
        """Test expiry is compared against the current time."""
        token = AuthToken(token="abc", expires_at=1000)

        with patch("checkwatch.github.auth.time.time", return_value=999):
            assert not token.is_expired
        with patch("checkwatch.github.auth.time.time", return_value=1000):
            assert token.is_expired


class TestPersonalAccessTokenAuth:
    """Test PersonalAccessTokenAuth."""

    @pytest.mark.asyncio
    async def test_get_token(self) -> None:
        """Test the token is stripped and uses the token scheme."""
        auth = PersonalAccessTokenAuth("  ghp_abc\n")

        token = await auth.get_token()

        assert token.token == "ghp_abc"
        assert token.to_header() == {"Authorization": "token ghp_abc"}

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_token_is_rejected(self, value: str) -> None:
        """Test a blank token fails immediately."""
        with pytest.raises(GitHubAuthenticationError, match="required"):
            PersonalAccessTokenAuth(value)

    @pytest.mark.asyncio
    async def test_from_account(self) -> None:
        """Test the provider uses the account's stored token."""
        auth = PersonalAccessTokenAuth.from_account(AccountFactory.create())

        token = await auth.get_token()

        assert token.token == "ghp_test_token"
