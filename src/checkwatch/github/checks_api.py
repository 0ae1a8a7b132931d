"""GitHub REST implementation of the check monitor's API interface.

Converts raw GitHub JSON into the monitor's transfer objects. Every
``GitHubError`` is logged and turned into ``None`` so that a failed fetch only
postpones evaluation to the next cycle.
"""

import logging
from datetime import datetime
from typing import Any

from ..models.enums import CheckConclusion, CheckStatus, LegacyStatusState
from ..models.repository import PullRequestRef
from ..workers.monitor.interfaces import (
    APICheckRun,
    APIStatus,
    CheckRunBundle,
    ChecksAPI,
    LegacyStatusBundle,
    PullRequestSummary,
    RemoteCommit,
)
from .client import GitHubClient
from .exceptions import GitHubError

logger = logging.getLogger(__name__)

# Actions reports these while a run waits for a runner or an approval.
_QUEUED_STATUSES = {"queued", "waiting", "requested", "pending"}


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def convert_pull_request(pr_data: dict[str, Any]) -> PullRequestSummary:
    """Convert a pull request from the pulls listing."""
    head = pr_data["head"]
    base = pr_data["base"]
    created_at = parse_timestamp(pr_data["created_at"])
    updated_at = parse_timestamp(pr_data.get("updated_at")) or created_at
    if created_at is None or updated_at is None:
        raise ValueError(f"Pull request #{pr_data.get('number')} has no timestamps")

    return PullRequestSummary(
        number=pr_data["number"],
        title=pr_data.get("title") or "",
        author=(pr_data.get("user") or {}).get("login", ""),
        head=PullRequestRef(ref=head["ref"], sha=head["sha"]),
        base=PullRequestRef(ref=base["ref"], sha=base["sha"]),
        created_at=created_at,
        updated_at=updated_at,
        draft=bool(pr_data.get("draft", False)),
        html_url=pr_data.get("html_url"),
    )


def convert_status(status_data: dict[str, Any]) -> APIStatus:
    """Convert a legacy commit status."""
    return APIStatus(
        id=status_data.get("id", 0),
        context=status_data["context"],
        state=LegacyStatusState(status_data["state"]),
        description=status_data.get("description"),
        target_url=status_data.get("target_url"),
        created_at=parse_timestamp(status_data.get("created_at")),
        updated_at=parse_timestamp(status_data.get("updated_at")),
    )


def convert_check_run(check_data: dict[str, Any]) -> APICheckRun:
    """Convert a check run."""
    raw_status = check_data["status"]
    status = (
        CheckStatus.QUEUED if raw_status in _QUEUED_STATUSES else CheckStatus(raw_status)
    )
    conclusion = check_data.get("conclusion")
    output = check_data.get("output") or {}

    return APICheckRun(
        id=check_data.get("id", 0),
        name=check_data["name"],
        status=status,
        conclusion=CheckConclusion(conclusion) if conclusion else None,
        started_at=parse_timestamp(check_data.get("started_at")),
        completed_at=parse_timestamp(check_data.get("completed_at")),
        html_url=check_data.get("html_url") or check_data.get("details_url"),
        head_sha=check_data.get("head_sha"),
        output_title=output.get("title"),
    )


class GitHubChecksAPI(ChecksAPI):
    """Check monitor queries backed by a ``GitHubClient``."""

    def __init__(self, github_client: GitHubClient, max_pull_request_pages: int = 3):
        """Initialize the adapter.

        Args:
            github_client: Authenticated GitHub client
            max_pull_request_pages: Page limit when scanning the pulls listing
        """
        self.github_client = github_client
        self.max_pull_request_pages = max_pull_request_pages

    async def fetch_updated_open_pull_requests_since(
        self, owner: str, repo: str, since: datetime, actor: str, limit: int
    ) -> list[PullRequestSummary] | None:
        """Fetch open pull requests by ``actor`` updated after ``since``.

        The listing is sorted by update time, so scanning stops at the first
        pull request not updated after ``since``.
        """
        pull_requests: list[PullRequestSummary] = []
        if limit <= 0:
            return pull_requests

        paginator = self.github_client.list_pulls(owner, repo)
        paginator.max_pages = self.max_pull_request_pages

        try:
            async for pr_data in paginator:
                try:
                    pr = convert_pull_request(pr_data)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(
                        f"Failed to convert pull request {pr_data.get('number')}: {e}"
                    )
                    continue

                if pr.updated_at <= since:
                    break

                if pr.author.lower() != actor.lower():
                    continue

                pull_requests.append(pr)
                if len(pull_requests) >= limit:
                    break

        except GitHubError as e:
            logger.warning(f"Failed to list pull requests of {owner}/{repo}: {e}")
            return None

        logger.debug(
            f"Found {len(pull_requests)} pull requests by {actor} in {owner}/{repo} "
            f"updated since {since.isoformat()}"
        )
        return pull_requests

    async def fetch_combined_ref_status(
        self, owner: str, repo: str, ref: str
    ) -> LegacyStatusBundle | None:
        """Fetch the legacy commit statuses of a ref."""
        try:
            status_data = await self.github_client.get_combined_status(owner, repo, ref)
        except GitHubError as e:
            logger.warning(f"Failed to fetch statuses of {owner}/{repo}@{ref}: {e}")
            return None

        statuses = []
        for raw_status in status_data.get("statuses", []):
            try:
                statuses.append(convert_status(raw_status))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to convert status {raw_status.get('id')}: {e}")

        try:
            return LegacyStatusBundle(
                sha=status_data["sha"],
                state=LegacyStatusState(status_data.get("state", "pending")),
                statuses=statuses,
            )
        except (KeyError, ValueError) as e:
            logger.warning(f"Malformed combined status for {owner}/{repo}@{ref}: {e}")
            return None

    async def fetch_ref_check_runs(
        self, owner: str, repo: str, ref: str
    ) -> CheckRunBundle | None:
        """Fetch all check runs of a ref."""
        try:
            raw_check_runs = await self.github_client.list_check_runs(
                owner, repo, ref
            ).collect_all()
        except GitHubError as e:
            logger.warning(f"Failed to fetch check runs of {owner}/{repo}@{ref}: {e}")
            return None

        check_runs = []
        for check_data in raw_check_runs:
            try:
                check_runs.append(convert_check_run(check_data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(
                    f"Failed to convert check run {check_data.get('id')}: {e}"
                )

        return CheckRunBundle(total_count=len(check_runs), check_runs=check_runs)

    async def fetch_commit(self, owner: str, repo: str, sha: str) -> RemoteCommit | None:
        """Fetch a commit and its full message."""
        try:
            commit_data = await self.github_client.get_commit(owner, repo, sha)
        except GitHubError as e:
            logger.warning(f"Failed to fetch commit {owner}/{repo}@{sha}: {e}")
            return None

        try:
            return RemoteCommit(
                sha=commit_data["sha"], message=commit_data["commit"]["message"]
            )
        except (KeyError, TypeError) as e:
            logger.warning(f"Malformed commit {owner}/{repo}@{sha}: {e}")
            return None

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.github_client.close()
