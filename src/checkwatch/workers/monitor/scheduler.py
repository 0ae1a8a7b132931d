"""Scheduler owning the poll timer and the repository subscription.

State machine::

    Unsubscribed --select_repository(repo with GitHub identity)--> Subscribed(repo)
    Subscribed   --select_repository(any) / close()-------------> Unsubscribed ...

The timer is a single ``loop.call_later`` handle. It is armed when a
repository is subscribed and re-armed only after a cycle has finished, so
cycles never overlap. Every cycle is bound to the ``Subscription`` object it
was started for and commits to the gate only if that object is still the
current subscription.

The "since" window of the next listing only advances after a committed
cycle, and never past a candidate whose head commit has not completed.
"""

import asyncio
import contextlib
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from ...models.repository import Repository
from .interfaces import AccountResolver, PullRequestSummary
from .models import PullRequestCheckState
from .notification_gate import NotificationGate
from .poll_cycle import PollCycle

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# The listing compares updated_at strictly, so a held-back window ends just
# before the pending pull request.
PENDING_MARGIN = timedelta(seconds=1)


@dataclass(eq=False)
class Subscription:
    """A single subscription to a repository.

    Compared by identity: selecting the same repository again creates a new
    subscription, and cycles of the old one are discarded.
    """

    repository: Repository
    last_checked_at: datetime | None = None


class ChecksMonitorScheduler:
    """Drives poll cycles for the selected repository on a recurring timer."""

    def __init__(
        self,
        accounts: AccountResolver,
        poll_cycle: PollCycle,
        gate: NotificationGate,
        poll_interval: float = 60.0,
        pull_request_limit: int = 3,
        lookback_seconds: float = 0.0,
        fetch_timeout: float | None = 30.0,
        initial_delay: float = 1.0,
    ):
        """Initialize the scheduler.

        Args:
            accounts: Resolves the account and API client of a repository
            poll_cycle: Evaluates candidate pull requests
            gate: Receives the results of completed cycles
            poll_interval: Seconds between the end of a cycle and the next one
            pull_request_limit: Maximum candidate pull requests per cycle
            lookback_seconds: Extra window subtracted from the last check time
            fetch_timeout: Seconds allowed for the pull request listing
            initial_delay: Seconds between subscribing and the first cycle
        """
        self.accounts = accounts
        self.poll_cycle = poll_cycle
        self.gate = gate
        self.poll_interval = poll_interval
        self.pull_request_limit = pull_request_limit
        self.lookback = timedelta(seconds=lookback_seconds)
        self.fetch_timeout = fetch_timeout
        self.initial_delay = initial_delay

        self._subscription: Subscription | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._cycle_lock = asyncio.Lock()
        self._cycle_tasks: set[asyncio.Task[Any]] = set()

        self.stats: dict[str, Any] = {
            "total_cycles": 0,
            "committed_cycles": 0,
            "discarded_cycles": 0,
            "skipped_cycles": 0,
            "failed_cycles": 0,
            "last_cycle_at": None,
            "last_error": None,
        }

    @property
    def subscription(self) -> Subscription | None:
        """Current subscription, if any."""
        return self._subscription

    @property
    def repository(self) -> Repository | None:
        """Currently subscribed repository, if any."""
        return self._subscription.repository if self._subscription else None

    @property
    def is_subscribed(self) -> bool:
        """Check if a repository is being monitored."""
        return self._subscription is not None

    @property
    def is_timer_armed(self) -> bool:
        """Check if a cycle is scheduled."""
        return self._timer is not None

    def select_repository(self, repository: Repository) -> None:
        """Start monitoring a repository, replacing any current subscription.

        Repositories without a GitHub identity leave the scheduler
        unsubscribed. Must be called from within the running event loop.
        """
        self.unsubscribe()

        previous = self._subscription
        self._subscription = None

        if not repository.has_github_repository:
            logger.info(f"Repository {repository} has no GitHub remote, not monitoring")
            return

        if previous is not None and previous.repository == repository:
            last_checked_at = previous.last_checked_at
        else:
            # Tracked states are keyed by PR number and only valid per repository.
            self.gate.reset()
            last_checked_at = None

        subscription = Subscription(repository, last_checked_at=last_checked_at)
        self._subscription = subscription
        self._arm_timer(subscription, self.initial_delay)

        logger.info(
            f"Monitoring checks of {repository} every {self.poll_interval:.0f}s"
        )

    def unsubscribe(self) -> None:
        """Cancel the pending timer. An in-flight cycle is left to finish."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm_timer(self, subscription: Subscription, delay: float | None = None) -> None:
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(
            self.poll_interval if delay is None else delay,
            self._on_timer_fired,
            subscription,
        )

    def _on_timer_fired(self, subscription: Subscription) -> None:
        self._timer = None
        if subscription is not self._subscription:
            return

        task = asyncio.create_task(
            self._run_scheduled_cycle(subscription),
            name=f"checks-poll-{subscription.repository.name}",
        )
        self._cycle_tasks.add(task)
        task.add_done_callback(self._cycle_tasks.discard)

    async def _run_scheduled_cycle(self, subscription: Subscription) -> None:
        try:
            await self._poll(subscription)
        finally:
            if subscription is self._subscription and self._timer is None:
                self._arm_timer(subscription)

    async def poll_now(self) -> bool:
        """Run one cycle for the current subscription right away.

        Returns:
            True if the cycle's results were committed to the gate
        """
        if self._subscription is None:
            return False
        return await self._poll(self._subscription)

    async def _poll(self, subscription: Subscription) -> bool:
        """Run one cycle, serialized with any other cycle."""
        async with self._cycle_lock:
            if subscription is not self._subscription:
                return False

            self.stats["total_cycles"] += 1
            self.stats["last_cycle_at"] = datetime.now(UTC)

            try:
                return await self._run_cycle(subscription)
            except Exception as e:
                logger.error(
                    f"Poll cycle for {subscription.repository} failed: {e}",
                    exc_info=True,
                )
                self.stats["failed_cycles"] += 1
                self.stats["last_error"] = {
                    "message": str(e),
                    "timestamp": datetime.now(UTC),
                }
                return False

    def _get_since(self, subscription: Subscription) -> datetime:
        if subscription.last_checked_at is None:
            return EPOCH
        return max(EPOCH, subscription.last_checked_at - self.lookback)

    async def _run_cycle(self, subscription: Subscription) -> bool:
        repository = subscription.repository
        github_repository = repository.github_repository
        if github_repository is None:
            return False

        resolved = await self.accounts.resolve_account_and_api_client(repository)
        if resolved is None:
            logger.debug(f"No account for {repository}, skipping cycle")
            self.stats["skipped_cycles"] += 1
            return False

        account, api = resolved
        since = self._get_since(subscription)
        checked_at = datetime.now(UTC)

        try:
            pull_requests = await asyncio.wait_for(
                api.fetch_updated_open_pull_requests_since(
                    github_repository.owner,
                    github_repository.name,
                    since,
                    account.login,
                    self.pull_request_limit,
                ),
                timeout=self.fetch_timeout,
            )
        except TimeoutError:
            logger.warning(f"Timed out listing pull requests of {repository}")
            pull_requests = None

        if pull_requests is None:
            self.stats["skipped_cycles"] += 1
            return False

        result = await self.poll_cycle.run(repository, api, pull_requests)

        if subscription is not self._subscription:
            logger.info(f"Subscription to {repository} changed, discarding cycle")
            self.stats["discarded_cycles"] += 1
            return False

        self.gate.apply(result)
        subscription.last_checked_at = self._next_checked_at(
            checked_at, pull_requests, result.states
        )
        self.stats["committed_cycles"] += 1
        return True

    def _next_checked_at(
        self,
        checked_at: datetime,
        pull_requests: Sequence[PullRequestSummary],
        states: Mapping[int, PullRequestCheckState],
    ) -> datetime:
        """Keep pull requests with unfinished checks inside the next window.

        GitHub does not touch a pull request's ``updated_at`` when its checks
        finish, so the window may only move past candidates that completed.
        """
        pending = [
            pr.updated_at
            for pr in pull_requests
            if not self._is_settled(states.get(pr.number), pr.head.sha)
        ]
        if not pending:
            return checked_at

        logger.debug(
            f"{len(pending)} pull requests still pending, holding the window open"
        )
        return min(checked_at, min(pending) - PENDING_MARGIN)

    @staticmethod
    def _is_settled(state: PullRequestCheckState | None, head_sha: str) -> bool:
        return state is not None and state.is_completed and state.head_sha == head_sha

    async def close(self) -> None:
        """Stop monitoring and cancel any in-flight scheduled cycle."""
        self.unsubscribe()
        self._subscription = None

        for task in list(self._cycle_tasks):
            task.cancel()
        for task in list(self._cycle_tasks):
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def get_status(self) -> dict[str, Any]:
        """Get scheduler status for health reporting."""
        return {
            "subscribed": self.is_subscribed,
            "repository": str(self.repository) if self.repository else None,
            "timer_armed": self.is_timer_armed,
            "stats": dict(self.stats),
            "gate": self.gate.get_statistics(),
        }
