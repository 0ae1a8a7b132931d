"""Enums shared by the check monitoring components."""

import enum


class CheckStatus(str, enum.Enum):
    """Status of a single check."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CheckConclusion(str, enum.Enum):
    """Conclusion of a completed check."""

    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    ACTION_REQUIRED = "action_required"
    STALE = "stale"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "CheckConclusion":
        # Conclusions GitHub adds later count as not successful.
        return cls.UNKNOWN


class CheckSource(str, enum.Enum):
    """GitHub mechanism a check was reported through."""

    LEGACY_STATUS = "legacy_status"
    CHECK_RUN = "check_run"


class CombinedConclusion(str, enum.Enum):
    """Overall verdict across all checks of a ref."""

    SUCCESS = "success"
    FAILURE = "failure"
    IN_PROGRESS = "in_progress"


class PullRequestCheckStatus(str, enum.Enum):
    """Tracked check status of a pull request's head commit."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PullRequestCheckConclusion(str, enum.Enum):
    """Tracked check conclusion of a pull request's head commit."""

    SUCCESS = "success"
    FAILURE = "failure"


class LegacyStatusState(str, enum.Enum):
    """State of a legacy commit status."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"

    @classmethod
    def _missing_(cls, value: object) -> "LegacyStatusState":
        return cls.ERROR


SUCCESSFUL_CONCLUSIONS = frozenset(
    {CheckConclusion.SUCCESS, CheckConclusion.NEUTRAL, CheckConclusion.SKIPPED}
)
