"""Formatting and default delivery of failed-check notifications.

Formatting lives here so every delivery channel renders the same text.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ...models.repository import PullRequest, Repository
from .models import RefCheck

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Pull request checks failed"
SHORT_SHA_LENGTH = 7


@dataclass(frozen=True)
class NotificationMessage:
    """Rendered notification text."""

    title: str
    body: str
    url: str | None = None


def summarize_failed_checks(checks: Sequence[RefCheck]) -> str:
    """Name the failed checks, e.g. ``"CI"`` or ``"CI and 2 more"``."""
    failed = [check.name for check in checks if check.is_failed]
    if not failed:
        return "Checks"
    if len(failed) == 1:
        return failed[0]
    return f"{failed[0]} and {len(failed) - 1} more"


def format_notification(
    repository: Repository,
    pull_request: PullRequest,
    commit_message: str,
    commit_sha: str,
    checks: Sequence[RefCheck],
) -> NotificationMessage:
    """Render the notification for a pull request whose checks failed."""
    short_sha = commit_sha[:SHORT_SHA_LENGTH]
    summary_line = commit_message.splitlines()[0] if commit_message else ""

    lines = [
        f"{summarize_failed_checks(checks)} - {pull_request.title} ({short_sha})",
        "Some jobs were not successful.",
    ]
    if summary_line:
        lines.append(f"Commit: {summary_line}")

    for check in checks:
        if not check.is_failed:
            continue
        conclusion = check.conclusion.value if check.conclusion else "unknown"
        line = f"- {check.name}: {conclusion}"
        if check.html_url:
            line += f" ({check.html_url})"
        lines.append(line)

    return NotificationMessage(
        title=f"{NOTIFICATION_TITLE}: {repository.name} #{pull_request.number}",
        body="\n".join(lines),
        url=pull_request.html_url,
    )


class LoggingNotifier:
    """Failed-check observer that writes the rendered notification to the log."""

    def __init__(self, level: int = logging.WARNING):
        """Initialize the notifier.

        Args:
            level: Log level of the notification record
        """
        self.level = level
        self.sent_count = 0

    def __call__(
        self,
        repository: Repository,
        pull_request: PullRequest,
        commit_message: str,
        commit_sha: str,
        checks: Sequence[RefCheck],
    ) -> None:
        """Log one notification."""
        message = format_notification(
            repository, pull_request, commit_message, commit_sha, checks
        )
        self.sent_count += 1
        logger.log(self.level, f"{message.title}\n{message.body}")
