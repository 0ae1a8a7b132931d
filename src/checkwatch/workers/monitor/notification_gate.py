"""Notification gate: the single authority on what has already been reported.

The gate holds the last known check state of every tracked pull request,
keyed by pull request number. The mapping is never patched in place: each
poll cycle builds a complete new mapping and the gate swaps it in as a
read-only snapshot. Pull requests missing from the new mapping are no longer
tracked and will be evaluated from scratch if they come back.
"""

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType

from ...models.enums import CombinedConclusion, PullRequestCheckConclusion
from .models import (
    ChecksFailedCallback,
    NotificationEvent,
    PollCycleResult,
    PullRequestCheckState,
)

logger = logging.getLogger(__name__)


class NotificationGate:
    """Tracks pull request check states and dispatches failure notifications."""

    def __init__(self) -> None:
        """Initialize an empty gate."""
        self._states: Mapping[int, PullRequestCheckState] = MappingProxyType({})
        self._observers: list[ChecksFailedCallback] = []
        self._statistics = {
            "snapshots_applied": 0,
            "notifications_emitted": 0,
            "observer_errors": 0,
        }

    @property
    def states(self) -> Mapping[int, PullRequestCheckState]:
        """Read-only snapshot of the tracked states.

        The snapshot is stale as soon as the next cycle is applied.
        """
        return self._states

    def get_state(self, pr_number: int) -> PullRequestCheckState | None:
        """Get the tracked state of a pull request."""
        return self._states.get(pr_number)

    def should_evaluate(self, pr_number: int, head_sha: str) -> bool:
        """Check if a pull request's checks need to be fetched again.

        A head commit whose checks were already completed is never evaluated
        again; a new head commit always is.
        """
        previous = self._states.get(pr_number)
        if previous is None:
            return True
        return not (previous.is_completed and previous.head_sha == head_sha)

    def evaluate(
        self, pr_number: int, head_sha: str, conclusion: CombinedConclusion
    ) -> tuple[PullRequestCheckState, bool]:
        """Decide the new state of a pull request and whether to notify.

        Args:
            pr_number: Pull request number
            head_sha: Head commit the checks were evaluated for
            conclusion: Combined conclusion of the head commit's checks

        Returns:
            Tuple of (new state, whether a notification must be emitted)
        """
        if conclusion == CombinedConclusion.IN_PROGRESS:
            return PullRequestCheckState.in_progress(head_sha), False

        if conclusion == CombinedConclusion.SUCCESS:
            return (
                PullRequestCheckState.completed(
                    head_sha, PullRequestCheckConclusion.SUCCESS
                ),
                False,
            )

        new_state = PullRequestCheckState.completed(
            head_sha, PullRequestCheckConclusion.FAILURE
        )
        previous = self._states.get(pr_number)
        already_reported = previous is not None and previous == new_state
        return new_state, not already_reported

    def commit(self, states: Mapping[int, PullRequestCheckState]) -> None:
        """Replace the tracked states with a new snapshot."""
        self._states = MappingProxyType(dict(states))
        self._statistics["snapshots_applied"] += 1

    def reset(self) -> None:
        """Forget all tracked states."""
        self._states = MappingProxyType({})

    def apply(self, result: PollCycleResult) -> None:
        """Commit a poll cycle's states, then dispatch its notifications."""
        self.commit(result.states)
        for event in result.events:
            self.notify(event)

    def on_checks_failed(self, callback: ChecksFailedCallback) -> Callable[[], None]:
        """Register an observer for failed pull request checks.

        Args:
            callback: Called with (repository, pull_request, commit_message,
                commit_sha, checks) once per notification

        Returns:
            Function that removes the observer again
        """
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def notify(self, event: NotificationEvent) -> int:
        """Deliver a notification to every observer, in registration order.

        An observer that raises does not prevent delivery to the others.

        Returns:
            Number of observers that handled the event without error
        """
        self._statistics["notifications_emitted"] += 1
        logger.info(f"Checks failed: {event}")

        delivered = 0
        for observer in list(self._observers):
            try:
                observer(
                    event.repository,
                    event.pull_request,
                    event.commit_message,
                    event.commit_sha,
                    event.checks,
                )
                delivered += 1
            except Exception as e:
                self._statistics["observer_errors"] += 1
                logger.error(f"Checks failed observer raised: {e}", exc_info=True)

        return delivered

    def get_statistics(self) -> dict[str, int]:
        """Get gate counters."""
        return {**self._statistics, "tracked_pull_requests": len(self._states)}
