"""Check monitor: merged check verdicts and exactly-once failure notifications.

Components, leaf-first:
- Check Source Merger: merges legacy statuses and check runs of a ref
- Poll Cycle: evaluates candidate pull requests against tracked states
- Notification Gate: owns tracked states and dispatches notifications
- Scheduler: owns the poll timer and the repository subscription

The GitHub-backed account store lives in ``.accounts`` and is not imported
here, because it depends on the GitHub adapter which depends on the
interfaces of this package.
"""

from .check_merger import (
    CheckSourceMerger,
    api_check_run_to_ref_check,
    api_status_to_ref_check,
    compute_combined_conclusion,
    get_latest_check_runs_by_name,
)
from .interfaces import (
    AccountResolver,
    APICheckRun,
    APIStatus,
    CheckRunBundle,
    ChecksAPI,
    LegacyStatusBundle,
    LocalCommit,
    LocalCommitReader,
    PullRequestSummary,
    RemoteCommit,
)
from .local_git import GitLocalCommitReader
from .models import (
    ChecksFailedCallback,
    CombinedCheckResult,
    NotificationEvent,
    PollCycleResult,
    PullRequestCheckState,
    RefCheck,
)
from .notification_gate import NotificationGate
from .notifications import LoggingNotifier, NotificationMessage, format_notification
from .poll_cycle import PollCycle
from .scheduler import ChecksMonitorScheduler, Subscription

__all__ = [
    "APICheckRun",
    "APIStatus",
    "AccountResolver",
    "CheckRunBundle",
    "CheckSourceMerger",
    "ChecksAPI",
    "ChecksFailedCallback",
    "ChecksMonitorScheduler",
    "CombinedCheckResult",
    "GitLocalCommitReader",
    "LegacyStatusBundle",
    "LocalCommit",
    "LocalCommitReader",
    "LoggingNotifier",
    "NotificationEvent",
    "NotificationGate",
    "NotificationMessage",
    "PollCycle",
    "PollCycleResult",
    "PullRequestCheckState",
    "PullRequestSummary",
    "RefCheck",
    "RemoteCommit",
    "Subscription",
    "api_check_run_to_ref_check",
    "api_status_to_ref_check",
    "compute_combined_conclusion",
    "format_notification",
    "get_latest_check_runs_by_name",
]
