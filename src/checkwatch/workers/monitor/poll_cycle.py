"""One evaluation pass over the candidate pull requests of a repository."""

import logging
import time
from collections.abc import Sequence
from types import MappingProxyType

from ...models.repository import Repository
from .check_merger import CheckSourceMerger
from .interfaces import ChecksAPI, PullRequestSummary
from .models import NotificationEvent, PollCycleResult, PullRequestCheckState
from .notification_gate import NotificationGate

logger = logging.getLogger(__name__)


class PollCycle:
    """Evaluates candidate pull requests against the gate's tracked states.

    The cycle only reads the gate. It returns the complete new state mapping
    and the notifications to emit, and the caller decides whether to apply
    them (it will not if the subscription changed while the cycle ran).
    """

    def __init__(self, merger: CheckSourceMerger, gate: NotificationGate):
        """Initialize the poll cycle.

        Args:
            merger: Builds the combined checks of a ref
            gate: Source of the previously tracked states
        """
        self.merger = merger
        self.gate = gate

    async def run(
        self,
        repository: Repository,
        api: ChecksAPI,
        pull_requests: Sequence[PullRequestSummary],
    ) -> PollCycleResult:
        """Evaluate every candidate pull request once.

        Args:
            repository: Subscribed repository
            api: API client of the repository's account
            pull_requests: Recently updated open pull requests

        Returns:
            New state mapping (candidates only) and notifications to emit
        """
        start_time = time.monotonic()
        previous_states = self.gate.states
        states: dict[int, PullRequestCheckState] = {}
        events: list[NotificationEvent] = []
        evaluated = 0
        skipped = 0
        seen: set[int] = set()

        for pr in pull_requests:
            if pr.number in seen:
                # The listing can repeat a pull request across pages.
                logger.debug(f"PR #{pr.number} listed twice, skipping duplicate")
                continue
            seen.add(pr.number)

            previous = previous_states.get(pr.number)

            if not self.gate.should_evaluate(pr.number, pr.head.sha):
                logger.debug(
                    f"PR #{pr.number} already evaluated at {pr.head.sha[:7]}, skipping"
                )
                if previous is not None:
                    states[pr.number] = previous
                skipped += 1
                continue

            try:
                result = await self.merger.get_checks_for_ref(
                    repository, api, pr.head.ref
                )
            except Exception as e:
                logger.error(
                    f"Error evaluating checks for PR #{pr.number}: {e}", exc_info=True
                )
                result = None

            if result is None:
                # Nothing to evaluate yet; keep whatever we knew before.
                if previous is not None:
                    states[pr.number] = previous
                skipped += 1
                continue

            evaluated += 1
            state, should_notify = self.gate.evaluate(
                pr.number, pr.head.sha, result.overall_conclusion
            )
            states[pr.number] = state

            logger.debug(f"PR #{pr.number}: {result}")

            if should_notify:
                events.append(
                    NotificationEvent(
                        repository=repository,
                        pull_request=pr.to_pull_request(),
                        commit_message=result.commit_message,
                        commit_sha=result.sha,
                        checks=result.checks,
                    )
                )

        logger.info(
            f"Poll cycle for {repository.name}: {len(pull_requests)} candidates, "
            f"{evaluated} evaluated, {skipped} skipped, {len(events)} failed "
            f"in {time.monotonic() - start_time:.2f}s"
        )

        return PollCycleResult(
            states=MappingProxyType(states),
            events=events,
            evaluated=evaluated,
            skipped=skipped,
        )
