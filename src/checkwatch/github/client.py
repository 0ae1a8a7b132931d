"""Async GitHub API client with authentication, retries and pagination."""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

import aiohttp

from .auth import AuthProvider
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
from .pagination import AsyncPaginator, PaginatedResponse
from .rate_limiting import CircuitBreaker, RateLimitManager

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (GitHubServerError, GitHubConnectionError, GitHubTimeoutError)


@dataclass
class GitHubClientConfig:
    """Configuration for GitHub client."""

    base_url: str = "https://api.github.com"
    timeout: int = 30
    max_retries: int = 3
    retry_backoff_factor: float = 2.0
    rate_limit_buffer: int = 100
    user_agent: str = "checkwatch/0.1"
    max_concurrent_requests: int = 10


@dataclass
class GitHubResponse:
    """Decoded response body together with its status and headers."""

    status: int
    data: Any
    headers: dict[str, str]


class GitHubClient:
    """Async GitHub REST API client."""

    def __init__(
        self,
        auth: AuthProvider,
        config: GitHubClientConfig | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            auth: Authentication provider
            config: Client configuration
        """
        self.auth = auth
        self.config = config or GitHubClientConfig()
        self.rate_limiter = RateLimitManager(buffer=self.config.rate_limit_buffer)
        self.circuit_breaker = CircuitBreaker()

        # HTTP session is created on first use
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()
        self._request_semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

    async def __aenter__(self) -> "GitHubClient":
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Return the HTTP session, creating it if needed."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(
                    timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                    headers={
                        "User-Agent": self.config.user_agent,
                        "Accept": "application/vnd.github+json",
                    },
                )
            return self._session

    async def close(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _build_url(self, path: str) -> str:
        """Join an API path onto the base URL, keeping any base path prefix."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> GitHubResponse:
        """Send a request with retries and return the decoded response.

        Server errors, timeouts and connection failures are retried with
        exponential backoff. Client errors are raised immediately.

        Raises:
            GitHubError: Various GitHub API errors
        """
        correlation_id = str(uuid.uuid4())[:8]

        if not self.circuit_breaker.can_attempt_request():
            wait_time = self.circuit_breaker.get_wait_time()
            raise GitHubConnectionError(
                f"Circuit breaker open. Wait {wait_time:.1f}s before retry."
            )

        self.rate_limiter.check_rate_limit()

        auth_token = await self.auth.get_token()
        request_kwargs: dict[str, Any] = {
            "params": params,
            "headers": auth_token.to_header(),
        }
        if data is not None:
            request_kwargs["json"] = data

        session = await self._ensure_session()

        last_exception: GitHubError | None = None
        for attempt in range(self.config.max_retries + 1):
            try:
                async with self._request_semaphore:
                    start_time = time.monotonic()
                    logger.debug(
                        f"GitHub API request [{correlation_id}] {method} {url} "
                        f"(attempt {attempt + 1})"
                    )

                    async with session.request(method, url, **request_kwargs) as response:
                        headers = dict(response.headers)
                        self.rate_limiter.update_rate_limit(headers)

                        logger.debug(
                            f"GitHub API response [{correlation_id}] {response.status} "
                            f"in {time.monotonic() - start_time:.2f}s"
                        )

                        if response.status >= 400:
                            await self._raise_for_error_response(
                                response, correlation_id
                            )

                        body = None
                        if response.status != 204:
                            body = await response.json(content_type=None)

                self.circuit_breaker.record_success()
                return GitHubResponse(status=response.status, data=body, headers=headers)

            except RETRYABLE_ERRORS as e:
                last_exception = e
                self.circuit_breaker.record_failure()
            except TimeoutError:
                last_exception = GitHubTimeoutError(f"Request timeout for {method} {url}")
                self.circuit_breaker.record_failure()
            except aiohttp.ClientError as e:
                last_exception = GitHubConnectionError(
                    f"Connection error for {method} {url}: {e}"
                )
                self.circuit_breaker.record_failure()

            if attempt < self.config.max_retries:
                backoff_time = self.config.retry_backoff_factor**attempt
                logger.warning(
                    f"Request [{correlation_id}] failed (attempt {attempt + 1}), "
                    f"retrying in {backoff_time:.1f}s: {last_exception}"
                )
                await asyncio.sleep(backoff_time)

        if last_exception:
            raise last_exception
        raise GitHubError(f"Request failed after {self.config.max_retries} retries")

    async def _raise_for_error_response(
        self, response: aiohttp.ClientResponse, correlation_id: str
    ) -> None:
        """Raise the exception matching an error response.

        Raises:
            GitHubError: Appropriate error based on status code
        """
        try:
            error_data = await response.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError):
            error_data = None
        if not isinstance(error_data, dict):
            error_data = {"message": await response.text()}

        error_message = error_data.get("message") or f"HTTP {response.status}"

        logger.warning(
            f"GitHub API error [{correlation_id}] {response.status}: {error_message}"
        )

        status = response.status
        if status == 401:
            raise GitHubAuthenticationError(error_message, status, error_data)
        if status in (403, 429) and (
            "rate limit" in error_message.lower()
            or response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            reset_time = response.headers.get("X-RateLimit-Reset")
            raise GitHubRateLimitError(
                error_message,
                reset_time=int(reset_time) if reset_time else None,
                remaining=int(response.headers.get("X-RateLimit-Remaining", "0")),
                limit=int(response.headers.get("X-RateLimit-Limit", "0")),
            )
        if status == 403:
            raise GitHubAuthenticationError(error_message, status, error_data)
        if status == 404:
            raise GitHubNotFoundError(error_message, status, error_data)
        if status == 422:
            raise GitHubValidationError(error_message, status, error_data)
        if 500 <= status < 600:
            raise GitHubServerError(error_message, status, error_data)
        raise GitHubError(error_message, status, error_data)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request to GitHub API.

        Args:
            path: API path (e.g., '/repos/owner/repo/pulls')
            params: Query parameters

        Returns:
            Decoded JSON response
        """
        response = await self._request("GET", self._build_url(path), params)
        return response.data

    async def _fetch_paginated(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        items_key: str | None = None,
    ) -> PaginatedResponse:
        """Fetch one page for an AsyncPaginator."""
        response = await self._request("GET", url, params)
        return PaginatedResponse(
            response.data, response.headers, url, items_key=items_key
        )

    def paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        per_page: int = 100,
        max_pages: int | None = None,
        items_key: str | None = None,
    ) -> AsyncPaginator:
        """Create async paginator for a GitHub API endpoint.

        Args:
            path: API path
            params: Query parameters
            per_page: Items per page (max 100)
            max_pages: Maximum pages to fetch
            items_key: Key holding the item list in object responses

        Returns:
            AsyncPaginator for iterating through results
        """
        return AsyncPaginator(
            client=self,
            initial_url=self._build_url(path),
            params=params,
            per_page=per_page,
            max_pages=max_pages,
            items_key=items_key,
        )

    # Convenience methods for the endpoints used by the check monitor

    def list_pulls(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        sort: str = "updated",
        direction: str = "desc",
        per_page: int = 100,
    ) -> AsyncPaginator:
        """List pull requests of a repository, most recently updated first."""
        return self.paginate(
            f"/repos/{owner}/{repo}/pulls",
            params={"state": state, "sort": sort, "direction": direction},
            per_page=per_page,
        )

    async def get_combined_status(
        self, owner: str, repo: str, ref: str
    ) -> dict[str, Any]:
        """Get the combined legacy commit status for a ref."""
        status: dict[str, Any] = await self.get(
            f"/repos/{owner}/{repo}/commits/{ref}/status", params={"per_page": 100}
        )
        return status

    def list_check_runs(
        self,
        owner: str,
        repo: str,
        ref: str,
        per_page: int = 100,
        max_pages: int | None = 5,
    ) -> AsyncPaginator:
        """List check runs for a ref."""
        return self.paginate(
            f"/repos/{owner}/{repo}/commits/{ref}/check-runs",
            per_page=per_page,
            max_pages=max_pages,
            items_key="check_runs",
        )

    async def get_commit(self, owner: str, repo: str, sha: str) -> dict[str, Any]:
        """Get a single commit."""
        commit: dict[str, Any] = await self.get(f"/repos/{owner}/{repo}/commits/{sha}")
        return commit
