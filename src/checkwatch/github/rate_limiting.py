"""Rate limit tracking and circuit breaking for the GitHub API client."""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .exceptions import GitHubRateLimitError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitInfo:
    """Rate limit window reported by GitHub response headers."""

    limit: int
    remaining: int
    reset: int
    used: int = 0
    resource: str = "core"

    @property
    def reset_datetime(self) -> datetime:
        """Get reset time as an aware datetime."""
        return datetime.fromtimestamp(self.reset, tz=UTC)

    @property
    def seconds_until_reset(self) -> float:
        """Get seconds until the window resets."""
        return max(0.0, self.reset - time.time())

    @property
    def is_exceeded(self) -> bool:
        """Check if no calls remain in the window."""
        return self.remaining <= 0


@dataclass
class RateLimitManager:
    """Tracks rate limits per resource and refuses requests inside the buffer."""

    buffer: int = 100

    _rate_limits: dict[str, RateLimitInfo] = field(default_factory=dict)

    def get_rate_limit(self, resource: str = "core") -> RateLimitInfo | None:
        """Get the last known rate limit for a resource."""
        return self._rate_limits.get(resource)

    def update_rate_limit(self, headers: Mapping[str, str]) -> None:
        """Update rate limit info from response headers.

        Args:
            headers: HTTP response headers from the GitHub API
        """
        if "X-RateLimit-Limit" not in headers:
            return

        try:
            rate_limit = RateLimitInfo(
                limit=int(headers.get("X-RateLimit-Limit", 5000)),
                remaining=int(headers.get("X-RateLimit-Remaining", 0)),
                reset=int(headers.get("X-RateLimit-Reset", 0)),
                used=int(headers.get("X-RateLimit-Used", 0)),
                resource=headers.get("X-RateLimit-Resource", "core"),
            )
        except (ValueError, TypeError):
            logger.debug(f"Ignoring malformed rate limit headers: {dict(headers)}")
            return

        self._rate_limits[rate_limit.resource] = rate_limit

    def check_rate_limit(self, resource: str = "core") -> None:
        """Refuse a request when the remaining budget is inside the buffer.

        Raises:
            GitHubRateLimitError: If the request should wait for the reset
        """
        rate_limit = self.get_rate_limit(resource)
        if rate_limit is None:
            return

        if rate_limit.remaining <= self.buffer and rate_limit.seconds_until_reset > 0:
            raise GitHubRateLimitError(
                f"Rate limit approaching for {resource}. "
                f"Remaining: {rate_limit.remaining}, "
                f"Reset in {rate_limit.seconds_until_reset:.0f} seconds",
                reset_time=rate_limit.reset,
                remaining=rate_limit.remaining,
                limit=rate_limit.limit,
            )


class CircuitBreaker:
    """Stops calling GitHub after repeated failures until a recovery timeout."""

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        """Initialize circuit breaker.

        Args:
            failure_threshold: Consecutive failures before the circuit opens
            recovery_timeout: Seconds to wait before allowing a trial request
        """
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout

        self._failure_count = 0
        self._last_failure_time: float | None = None
        self._state = "closed"  # closed, open, half_open

    @property
    def state(self) -> str:
        """Current circuit state."""
        return self._state

    @property
    def is_open(self) -> bool:
        """Check if circuit is open."""
        return self._state == "open"

    def record_success(self) -> None:
        """Record a successful call and close the circuit."""
        self._failure_count = 0
        self._state = "closed"

    def record_failure(self) -> None:
        """Record a failed call, opening the circuit past the threshold."""
        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._failure_count >= self.failure_threshold:
            if self._state != "open":
                logger.warning(
                    f"Circuit breaker opened after {self._failure_count} failures"
                )
            self._state = "open"

    def can_attempt_request(self) -> bool:
        """Check if a request may be sent now."""
        if self._state != "open":
            return True

        if (
            self._last_failure_time is not None
            and time.monotonic() - self._last_failure_time >= self.recovery_timeout
        ):
            self._state = "half_open"
            return True

        return False

    def get_wait_time(self) -> float:
        """Get seconds left before a trial request is allowed."""
        if not self.is_open or self._last_failure_time is None:
            return 0.0

        elapsed = time.monotonic() - self._last_failure_time
        return max(0.0, self.recovery_timeout - elapsed)
