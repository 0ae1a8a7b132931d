"""Merging of legacy commit statuses and check runs into one verdict.

GitHub reports the checks of a commit through two overlapping mechanisms.
Legacy commit statuses carry one final entry per context. Check runs keep
every run of a check, so a re-run workflow leaves several runs under the
same name. This module normalizes both into ``RefCheck`` objects, keeps only
the latest run per check name and computes the combined conclusion.
"""

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Sequence
from datetime import datetime
from typing import TypeVar

from ...models.enums import (
    CheckConclusion,
    CheckSource,
    CheckStatus,
    CombinedConclusion,
    LegacyStatusState,
)
from ...models.repository import Repository
from .interfaces import APICheckRun, APIStatus, ChecksAPI, LocalCommitReader
from .models import CombinedCheckResult, RefCheck

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LEGACY_STATE_MAPPING: dict[LegacyStatusState, CheckConclusion | None] = {
    LegacyStatusState.SUCCESS: CheckConclusion.SUCCESS,
    LegacyStatusState.FAILURE: CheckConclusion.FAILURE,
    LegacyStatusState.ERROR: CheckConclusion.FAILURE,
    LegacyStatusState.PENDING: None,
}


def api_status_to_ref_check(status: APIStatus) -> RefCheck:
    """Convert a legacy commit status into a check."""
    conclusion = _LEGACY_STATE_MAPPING[status.state]
    completed = status.state != LegacyStatusState.PENDING

    return RefCheck(
        name=status.context,
        status=CheckStatus.COMPLETED if completed else CheckStatus.IN_PROGRESS,
        conclusion=conclusion,
        started_at=status.created_at,
        completed_at=status.updated_at if completed else None,
        html_url=status.target_url,
        source=CheckSource.LEGACY_STATUS,
        description=status.description,
    )


def api_check_run_to_ref_check(check_run: APICheckRun) -> RefCheck:
    """Convert a check run into a check."""
    return RefCheck(
        name=check_run.name,
        status=check_run.status,
        conclusion=check_run.conclusion,
        started_at=check_run.started_at,
        completed_at=check_run.completed_at,
        html_url=check_run.html_url,
        source=CheckSource.CHECK_RUN,
        description=check_run.output_title,
    )


def _timestamp_key(value: datetime | None) -> tuple:
    # A missing timestamp sorts before any real one.
    return (1, value) if value is not None else (0,)


def _recency_key(check_run: APICheckRun) -> tuple:
    return (_timestamp_key(check_run.started_at), _timestamp_key(check_run.completed_at))


def get_latest_check_runs_by_name(
    check_runs: Iterable[APICheckRun],
) -> list[APICheckRun]:
    """Keep only the most recent run of every check name.

    The most recently started run wins; runs started at the same time are
    ordered by completion time. On a full tie the run seen first is kept.
    The result is ordered by the first appearance of each name.
    """
    latest: dict[str, APICheckRun] = {}

    for check_run in check_runs:
        current = latest.get(check_run.name)
        if current is None or _recency_key(check_run) > _recency_key(current):
            latest[check_run.name] = check_run

    return list(latest.values())


def compute_combined_conclusion(
    checks: Sequence[RefCheck],
) -> CombinedConclusion | None:
    """Compute the overall conclusion of a set of checks.

    Returns:
        ``IN_PROGRESS`` if any check has not completed, ``FAILURE`` if any
        completed check is not successful, ``SUCCESS`` otherwise, and None
        when there are no checks at all
    """
    if not checks:
        return None

    if any(not check.is_completed for check in checks):
        return CombinedConclusion.IN_PROGRESS

    if any(check.is_failed for check in checks):
        return CombinedConclusion.FAILURE

    return CombinedConclusion.SUCCESS


class CheckSourceMerger:
    """Builds the combined check result for a ref of a repository.

    Any missing input (statuses, check runs or the commit message) yields
    None, meaning "nothing to evaluate yet". None is never a conclusion.
    """

    def __init__(
        self, local_commits: LocalCommitReader, fetch_timeout: float | None = 30.0
    ):
        """Initialize the merger.

        Args:
            local_commits: Reader for commits of the local working copy
            fetch_timeout: Seconds allowed for each fetch, None for no limit
        """
        self.local_commits = local_commits
        self.fetch_timeout = fetch_timeout

    async def _with_timeout(self, awaitable: Awaitable[T | None], what: str) -> T | None:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.fetch_timeout)
        except TimeoutError:
            logger.warning(f"Timed out after {self.fetch_timeout}s fetching {what}")
            return None

    async def get_checks_for_ref(
        self, repository: Repository, api: ChecksAPI, ref: str
    ) -> CombinedCheckResult | None:
        """Fetch and merge the checks of a ref.

        Args:
            repository: Repository the ref belongs to
            api: API client of the repository's account
            ref: Branch name (or sha) to inspect

        Returns:
            Combined result, or None if there is nothing to evaluate
        """
        github_repository = repository.github_repository
        if github_repository is None:
            return None

        owner, name = github_repository.owner, github_repository.name

        statuses, check_runs = await asyncio.gather(
            self._with_timeout(
                api.fetch_combined_ref_status(owner, name, ref), f"statuses of {ref}"
            ),
            self._with_timeout(
                api.fetch_ref_check_runs(owner, name, ref), f"check runs of {ref}"
            ),
        )

        if statuses is None or check_runs is None:
            logger.debug(f"Check data for {github_repository.full_name}@{ref} unavailable")
            return None

        checks = [api_status_to_ref_check(status) for status in statuses.statuses]
        checks.extend(
            api_check_run_to_ref_check(check_run)
            for check_run in get_latest_check_runs_by_name(check_runs.check_runs)
        )

        overall_conclusion = compute_combined_conclusion(checks)
        if overall_conclusion is None:
            logger.debug(f"No checks reported for {github_repository.full_name}@{ref}")
            return None

        commit_message = await self._get_commit_message(repository, api, statuses.sha)
        if commit_message is None:
            logger.debug(f"Commit message for {statuses.sha} unavailable")
            return None

        return CombinedCheckResult(
            checks=tuple(checks),
            overall_conclusion=overall_conclusion,
            sha=statuses.sha,
            commit_message=commit_message,
        )

    async def _get_commit_message(
        self, repository: Repository, api: ChecksAPI, sha: str
    ) -> str | None:
        """Read the commit message locally, falling back to the API."""
        local_commit = await self._with_timeout(
            self.local_commits.get_local_commit(repository, sha), f"local commit {sha}"
        )
        if local_commit is not None:
            return local_commit.summary

        github_repository = repository.github_repository
        if github_repository is None:
            return None

        remote_commit = await self._with_timeout(
            api.fetch_commit(github_repository.owner, github_repository.name, sha),
            f"commit {sha}",
        )
        if remote_commit is None:
            return None

        return remote_commit.message
