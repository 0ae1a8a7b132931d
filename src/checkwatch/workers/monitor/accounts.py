"""Account resolution for monitored repositories.

An account is matched to a repository by API endpoint, so one account serves
every repository on github.com and separate accounts serve each GitHub
Enterprise server.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace

from ...github.auth import PersonalAccessTokenAuth
from ...github.checks_api import GitHubChecksAPI
from ...github.client import GitHubClient, GitHubClientConfig
from ...models.repository import Account, Repository
from .interfaces import AccountResolver, ChecksAPI

logger = logging.getLogger(__name__)


def _normalize_endpoint(endpoint: str) -> str:
    return endpoint.rstrip("/").lower()


class AccountsStore(AccountResolver):
    """Resolves accounts from a fixed list and caches one API client each."""

    def __init__(
        self,
        accounts: Iterable[Account],
        client_config: GitHubClientConfig | None = None,
    ):
        """Initialize the store.

        Args:
            accounts: Known accounts
            client_config: Template for API client settings; the base URL is
                replaced by each account's endpoint
        """
        self._accounts = list(accounts)
        self.client_config = client_config or GitHubClientConfig()
        self._api_clients: dict[tuple[str, str], GitHubChecksAPI] = {}

    def get_all(self) -> list[Account]:
        """Get all known accounts."""
        return list(self._accounts)

    def get_account_for_repository(self, repository: Repository) -> Account | None:
        """Find the account whose endpoint serves the repository."""
        github_repository = repository.github_repository
        if github_repository is None:
            return None

        endpoint = _normalize_endpoint(github_repository.endpoint)
        for account in self._accounts:
            if _normalize_endpoint(account.endpoint) == endpoint:
                return account
        return None

    def get_api_for_account(self, account: Account) -> GitHubChecksAPI:
        """Get the cached API client of an account, creating it on first use."""
        key = (_normalize_endpoint(account.endpoint), account.login)
        api = self._api_clients.get(key)
        if api is None:
            config = replace(self.client_config, base_url=account.endpoint)
            client = GitHubClient(
                auth=PersonalAccessTokenAuth.from_account(account), config=config
            )
            api = GitHubChecksAPI(client)
            self._api_clients[key] = api
        return api

    async def resolve_account_and_api_client(
        self, repository: Repository
    ) -> tuple[Account, ChecksAPI] | None:
        """Return the repository's account and its API client."""
        account = self.get_account_for_repository(repository)
        if account is None:
            logger.debug(f"No account configured for {repository}")
            return None
        return account, self.get_api_for_account(account)

    async def close(self) -> None:
        """Close every API client created by the store."""
        for api in self._api_clients.values():
            await api.close()
        self._api_clients.clear()
