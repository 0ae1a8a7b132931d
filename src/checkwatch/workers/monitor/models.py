"""Data models for the check monitor.

These are immutable value objects produced fresh on every poll. Only
``PullRequestCheckState`` outlives a poll cycle, and only inside the
notification gate's snapshot.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from ...models.enums import (
    SUCCESSFUL_CONCLUSIONS,
    CheckConclusion,
    CheckSource,
    CheckStatus,
    CombinedConclusion,
    PullRequestCheckConclusion,
    PullRequestCheckStatus,
)
from ...models.repository import PullRequest, Repository


@dataclass(frozen=True)
class RefCheck:
    """A single check of a ref, from either status source."""

    name: str
    status: CheckStatus
    conclusion: CheckConclusion | None
    started_at: datetime | None
    completed_at: datetime | None = None
    html_url: str | None = None
    source: CheckSource = CheckSource.CHECK_RUN
    description: str | None = None

    def __str__(self) -> str:
        """Return human-readable string representation."""
        if self.conclusion:
            return f"{self.name} ({self.status.value}:{self.conclusion.value})"
        return f"{self.name} ({self.status.value})"

    @property
    def is_completed(self) -> bool:
        """Check if the check has finished."""
        return self.status == CheckStatus.COMPLETED

    @property
    def is_successful(self) -> bool:
        """Check if the check finished with a non-failing conclusion."""
        return self.is_completed and self.conclusion in SUCCESSFUL_CONCLUSIONS

    @property
    def is_failed(self) -> bool:
        """Check if the check finished with a failing (or missing) conclusion."""
        return self.is_completed and self.conclusion not in SUCCESSFUL_CONCLUSIONS


@dataclass(frozen=True)
class CombinedCheckResult:
    """Merged, de-duplicated checks of one commit with the overall verdict."""

    checks: tuple[RefCheck, ...]
    overall_conclusion: CombinedConclusion
    sha: str
    commit_message: str

    @property
    def failed_checks(self) -> tuple[RefCheck, ...]:
        """Completed checks whose conclusion is not successful."""
        return tuple(check for check in self.checks if check.is_failed)

    def __str__(self) -> str:
        """Return human-readable string representation."""
        return (
            f"CombinedCheckResult({self.sha[:7]}, {self.overall_conclusion.value}, "
            f"checks={len(self.checks)}, failed={len(self.failed_checks)})"
        )


@dataclass(frozen=True)
class PullRequestCheckState:
    """Last known check state of a pull request's head commit."""

    head_sha: str
    check_status: PullRequestCheckStatus
    check_conclusion: PullRequestCheckConclusion | None = None

    @property
    def is_completed(self) -> bool:
        """Check if the head commit's checks have been fully evaluated."""
        return self.check_status == PullRequestCheckStatus.COMPLETED

    @classmethod
    def in_progress(cls, head_sha: str) -> "PullRequestCheckState":
        """State of a head commit whose checks are still running."""
        return cls(head_sha, PullRequestCheckStatus.IN_PROGRESS, None)

    @classmethod
    def completed(
        cls, head_sha: str, conclusion: PullRequestCheckConclusion
    ) -> "PullRequestCheckState":
        """State of a head commit whose checks have all finished."""
        return cls(head_sha, PullRequestCheckStatus.COMPLETED, conclusion)


@dataclass(frozen=True)
class NotificationEvent:
    """A pull request whose checks failed, to be reported exactly once."""

    repository: Repository
    pull_request: PullRequest
    commit_message: str
    commit_sha: str
    checks: tuple[RefCheck, ...]

    @property
    def failed_checks(self) -> tuple[RefCheck, ...]:
        """Checks that caused the notification."""
        return tuple(check for check in self.checks if check.is_failed)

    def __str__(self) -> str:
        """Return human-readable string representation."""
        return (
            f"NotificationEvent({self.repository.name} PR #{self.pull_request.number} "
            f"at {self.commit_sha[:7]}, failed={len(self.failed_checks)})"
        )


@dataclass(frozen=True)
class PollCycleResult:
    """Outcome of one poll cycle, not yet applied to the gate."""

    states: Mapping[int, PullRequestCheckState]
    events: list[NotificationEvent] = field(default_factory=list)
    evaluated: int = 0
    skipped: int = 0


ChecksFailedCallback = Callable[
    [Repository, PullRequest, str, str, Sequence[RefCheck]], None
]
