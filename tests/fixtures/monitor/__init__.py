"""Test data factories and in-memory collaborators for the check monitor."""

from .factories import (
    BASE_TIME,
    AccountFactory,
    APICheckRunFactory,
    APIStatusFactory,
    FakeAccountResolver,
    FakeChecksAPI,
    FakeLocalCommitReader,
    PullRequestSummaryFactory,
    RefCheckFactory,
    RepositoryFactory,
)

__all__ = [
    "BASE_TIME",
    "APICheckRunFactory",
    "APIStatusFactory",
    "AccountFactory",
    "FakeAccountResolver",
    "FakeChecksAPI",
    "FakeLocalCommitReader",
    "PullRequestSummaryFactory",
    "RefCheckFactory",
    "RepositoryFactory",
]
