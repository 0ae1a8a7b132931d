"""Interfaces and transfer objects for the collaborators of the check monitor.

The monitor core never talks to GitHub, git or the account store directly.
It consumes the abstract classes below, which keeps the core testable with
simple fakes and lets the GitHub, git and account adapters be swapped.

Every fetch method resolves to ``None`` on failure instead of raising; the
core treats that as "not evaluable this cycle".
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from ...models.enums import CheckConclusion, CheckStatus, LegacyStatusState
from ...models.repository import Account, PullRequest, PullRequestRef, Repository


@dataclass(frozen=True)
class PullRequestSummary:
    """Open pull request as returned by the pull request listing."""

    number: int
    title: str
    author: str
    head: PullRequestRef
    base: PullRequestRef
    created_at: datetime
    updated_at: datetime
    draft: bool = False
    html_url: str | None = None

    def to_pull_request(self) -> PullRequest:
        """Build the pull request handed to failed-check observers."""
        return PullRequest(
            number=self.number,
            title=self.title,
            author=self.author,
            head=self.head,
            base=self.base,
            created_at=self.created_at,
            draft=self.draft,
            html_url=self.html_url,
        )


@dataclass(frozen=True)
class APIStatus:
    """A single legacy commit status."""

    id: int
    context: str
    state: LegacyStatusState
    description: str | None = None
    target_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class LegacyStatusBundle:
    """Combined legacy status of a ref."""

    sha: str
    state: LegacyStatusState
    statuses: list[APIStatus] = field(default_factory=list)


@dataclass(frozen=True)
class APICheckRun:
    """A single check run. One name may have several runs after re-runs."""

    id: int
    name: str
    status: CheckStatus
    conclusion: CheckConclusion | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    html_url: str | None = None
    head_sha: str | None = None
    output_title: str | None = None


@dataclass(frozen=True)
class CheckRunBundle:
    """Check runs of a ref."""

    total_count: int
    check_runs: list[APICheckRun] = field(default_factory=list)


@dataclass(frozen=True)
class RemoteCommit:
    """Commit as fetched from the API."""

    sha: str
    message: str


@dataclass(frozen=True)
class LocalCommit:
    """Commit as read from a local working copy."""

    sha: str
    summary: str


class ChecksAPI(ABC):
    """Remote queries needed by the check monitor."""

    @abstractmethod
    async def fetch_updated_open_pull_requests_since(
        self, owner: str, repo: str, since: datetime, actor: str, limit: int
    ) -> list[PullRequestSummary] | None:
        """Fetch open pull requests by ``actor`` updated after ``since``.

        Args:
            owner: Repository owner
            repo: Repository name
            since: Only pull requests updated after this time
            actor: Login of the pull request author
            limit: Maximum number of pull requests to return

        Returns:
            Pull requests, most recently updated first, or None on failure
        """

    @abstractmethod
    async def fetch_combined_ref_status(
        self, owner: str, repo: str, ref: str
    ) -> LegacyStatusBundle | None:
        """Fetch the legacy commit statuses of a ref, or None on failure."""

    @abstractmethod
    async def fetch_ref_check_runs(
        self, owner: str, repo: str, ref: str
    ) -> CheckRunBundle | None:
        """Fetch the check runs of a ref, or None on failure."""

    @abstractmethod
    async def fetch_commit(self, owner: str, repo: str, sha: str) -> RemoteCommit | None:
        """Fetch a commit, or None on failure."""


class LocalCommitReader(ABC):
    """Reads commits from a local working copy."""

    @abstractmethod
    async def get_local_commit(
        self, repository: Repository, sha: str
    ) -> LocalCommit | None:
        """Return the local commit for ``sha``, or None if unavailable."""


class AccountResolver(ABC):
    """Resolves the account and API client used for a repository."""

    @abstractmethod
    async def resolve_account_and_api_client(
        self, repository: Repository
    ) -> tuple[Account, ChecksAPI] | None:
        """Return the account and API client, or None when no account matches."""
