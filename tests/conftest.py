"""
Shared fixtures for checkwatch tests.

Provides the default monitored repository, its account, and in-memory
collaborators for the check monitor so that unit and integration tests can
wire real monitor components without network or git access.
"""

import pytest

from checkwatch.models.repository import Account, Repository
from checkwatch.workers.monitor.check_merger import CheckSourceMerger
from checkwatch.workers.monitor.notification_gate import NotificationGate
from checkwatch.workers.monitor.poll_cycle import PollCycle
from tests.fixtures.monitor import (
    AccountFactory,
    FakeAccountResolver,
    FakeChecksAPI,
    FakeLocalCommitReader,
    RepositoryFactory,
)


@pytest.fixture
def repository() -> Repository:
    """
    Why: Most tests monitor the same repository
    What: Provides acme/widgets on github.com
    How: Uses RepositoryFactory defaults
    """
    return RepositoryFactory.create()


@pytest.fixture
def account() -> Account:
    """Account serving github.com repositories."""
    return AccountFactory.create()


@pytest.fixture
def fake_api() -> FakeChecksAPI:
    """
    Why: Isolates monitor logic from the GitHub REST API
    What: Provides an empty in-memory ChecksAPI
    How: Tests populate pull requests, statuses and check runs per ref
    """
    return FakeChecksAPI()


@pytest.fixture
def local_commits() -> FakeLocalCommitReader:
    """Local commit reader that knows no commits until a test adds some."""
    return FakeLocalCommitReader()


@pytest.fixture
def accounts(account: Account, fake_api: FakeChecksAPI) -> FakeAccountResolver:
    """Account resolver returning the default account and the fake API."""
    return FakeAccountResolver(account, fake_api)


@pytest.fixture
def gate() -> NotificationGate:
    """Empty notification gate."""
    return NotificationGate()


@pytest.fixture
def merger(local_commits: FakeLocalCommitReader) -> CheckSourceMerger:
    """Check source merger with a short fetch timeout."""
    return CheckSourceMerger(local_commits, fetch_timeout=1.0)


@pytest.fixture
def poll_cycle(merger: CheckSourceMerger, gate: NotificationGate) -> PollCycle:
    """Poll cycle wired to the real merger and gate."""
    return PollCycle(merger, gate)
