"""Domain models for check monitoring."""

from .enums import (
    SUCCESSFUL_CONCLUSIONS,
    CheckConclusion,
    CheckSource,
    CheckStatus,
    CombinedConclusion,
    LegacyStatusState,
    PullRequestCheckConclusion,
    PullRequestCheckStatus,
)
from .repository import (
    Account,
    GitHubRepository,
    PullRequest,
    PullRequestRef,
    Repository,
)

__all__ = [
    "SUCCESSFUL_CONCLUSIONS",
    "Account",
    "CheckConclusion",
    "CheckSource",
    "CheckStatus",
    "CombinedConclusion",
    "GitHubRepository",
    "LegacyStatusState",
    "PullRequest",
    "PullRequestCheckConclusion",
    "PullRequestCheckStatus",
    "PullRequestRef",
    "Repository",
]
