"""
Unit tests for the poll cycle.

Why: The poll cycle rebuilds the tracked states from scratch every time, so
     skipped and unevaluable pull requests must carry over exactly and
     notifications must be produced exactly once per failing head commit.

What: Tests PollCycle.run against a real gate with a mocked merger, and once
      end to end with the real merger and the in-memory API.

How: Configures the merger mock per head ref and inspects the returned
     PollCycleResult without applying it, unless a test says otherwise.
"""

from unittest.mock import AsyncMock

import pytest

from checkwatch.models.enums import (
    CheckConclusion,
    CheckStatus,
    CombinedConclusion,
    PullRequestCheckConclusion,
)
from checkwatch.workers.monitor.check_merger import CheckSourceMerger
from checkwatch.workers.monitor.models import CombinedCheckResult, PullRequestCheckState
from checkwatch.workers.monitor.poll_cycle import PollCycle
from tests.fixtures.monitor import (
    APICheckRunFactory,
    PullRequestSummaryFactory,
    RefCheckFactory,
)

FAILED_CHECK = RefCheckFactory.create(conclusion=CheckConclusion.FAILURE)
RUNNING_CHECK = RefCheckFactory.create(
    status=CheckStatus.IN_PROGRESS, conclusion=None, completed_at=None
)


def make_result(
    conclusion: CombinedConclusion, sha: str = "aaa", checks=None
) -> CombinedCheckResult:
    """Build a merged result with a matching check list."""
    if checks is None:
        checks = {
            CombinedConclusion.FAILURE: (FAILED_CHECK,),
            CombinedConclusion.IN_PROGRESS: (RUNNING_CHECK,),
            CombinedConclusion.SUCCESS: (RefCheckFactory.create(),),
        }[conclusion]
    return CombinedCheckResult(
        checks=tuple(checks),
        overall_conclusion=conclusion,
        sha=sha,
        commit_message="Add widget support",
    )


class TestPollCycle:
    """Tests for PollCycle.run."""

    @pytest.fixture
    def mock_merger(self) -> AsyncMock:
        """
        Why: Lets each test dictate the merged verdict of every pull request
        What: Provides an AsyncMock with the CheckSourceMerger interface
        How: Tests set a dict of results keyed by head ref via side_effect
        """
        return AsyncMock(spec=CheckSourceMerger)

    @pytest.fixture
    def cycle(self, mock_merger, gate) -> PollCycle:
        """Poll cycle with the mocked merger and a real gate."""
        return PollCycle(mock_merger, gate)

    def serve(self, mock_merger, results: dict) -> None:
        """Make the merger return results by head ref."""

        async def get_checks_for_ref(repository, api, ref):
            result = results[ref]
            if isinstance(result, Exception):
                raise result
            return result

        mock_merger.get_checks_for_ref.side_effect = get_checks_for_ref

    async def test_failure_records_state_and_emits_event(
        self, cycle, mock_merger, repository, fake_api
    ):
        """
        Why: A failing head commit is the one case that must reach observers
        What: Tests the completed failure state and the single event content
        How: Serves a failing result for PR #42 and inspects the cycle result
        """
        pr = PullRequestSummaryFactory.create(number=42, head_sha="aaa")
        self.serve(mock_merger, {"feature/pr-42": make_result(CombinedConclusion.FAILURE)})

        result = await cycle.run(repository, fake_api, [pr])

        assert result.states[42] == PullRequestCheckState.completed(
            "aaa", PullRequestCheckConclusion.FAILURE
        )
        assert len(result.events) == 1
        event = result.events[0]
        assert event.repository == repository
        assert event.pull_request == pr.to_pull_request()
        assert event.commit_message == "Add widget support"
        assert event.commit_sha == "aaa"
        assert event.checks == (FAILED_CHECK,)
        assert result.evaluated == 1
        mock_merger.get_checks_for_ref.assert_awaited_once_with(
            repository, fake_api, "feature/pr-42"
        )

    async def test_success_records_state_without_event(
        self, cycle, mock_merger, repository, fake_api
    ):
        """Test a successful head commit is completed silently."""
        pr = PullRequestSummaryFactory.create()
        self.serve(mock_merger, {"feature/pr-42": make_result(CombinedConclusion.SUCCESS)})

        result = await cycle.run(repository, fake_api, [pr])

        assert result.states[42] == PullRequestCheckState.completed(
            "aaa", PullRequestCheckConclusion.SUCCESS
        )
        assert result.events == []

    async def test_in_progress_records_state_without_event(
        self, cycle, mock_merger, repository, fake_api
    ):
        """Test running checks are tracked as in progress."""
        pr = PullRequestSummaryFactory.create()
        self.serve(
            mock_merger, {"feature/pr-42": make_result(CombinedConclusion.IN_PROGRESS)}
        )

        result = await cycle.run(repository, fake_api, [pr])

        assert result.states[42] == PullRequestCheckState.in_progress("aaa")
        assert result.events == []

    async def test_completed_same_sha_is_skipped_and_carried_over(
        self, cycle, mock_merger, gate, repository, fake_api
    ):
        """Test a completed head commit is neither fetched nor dropped."""
        done = PullRequestCheckState.completed("aaa", PullRequestCheckConclusion.FAILURE)
        gate.commit({42: done})

        result = await cycle.run(
            repository, fake_api, [PullRequestSummaryFactory.create(head_sha="aaa")]
        )

        mock_merger.get_checks_for_ref.assert_not_awaited()
        assert result.states == {42: done}
        assert result.events == []
        assert result.skipped == 1

    async def test_new_head_sha_is_evaluated_again(
        self, cycle, mock_merger, gate, repository, fake_api
    ):
        """Test a pushed commit gets a fresh evaluation and notification."""
        gate.commit(
            {42: PullRequestCheckState.completed("aaa", PullRequestCheckConclusion.FAILURE)}
        )
        self.serve(
            mock_merger,
            {"feature/pr-42": make_result(CombinedConclusion.FAILURE, sha="ccc")},
        )

        result = await cycle.run(
            repository, fake_api, [PullRequestSummaryFactory.create(head_sha="ccc")]
        )

        assert result.states[42].head_sha == "ccc"
        assert len(result.events) == 1

    async def test_no_result_carries_previous_state(
        self, cycle, mock_merger, gate, repository, fake_api
    ):
        """Test an unevaluable PR keeps whatever was known before."""
        gate.commit({42: PullRequestCheckState.in_progress("aaa")})
        self.serve(mock_merger, {"feature/pr-42": None})

        result = await cycle.run(
            repository, fake_api, [PullRequestSummaryFactory.create()]
        )

        assert result.states == {42: PullRequestCheckState.in_progress("aaa")}
        assert result.events == []

    async def test_no_result_creates_no_state(
        self, cycle, mock_merger, repository, fake_api
    ):
        """Test an unevaluable PR that was never tracked stays untracked."""
        self.serve(mock_merger, {"feature/pr-42": None})

        result = await cycle.run(
            repository, fake_api, [PullRequestSummaryFactory.create()]
        )

        assert result.states == {}
        assert result.skipped == 1

    async def test_merger_error_is_treated_as_no_result(
        self, cycle, mock_merger, repository, fake_api
    ):
        """Test one broken PR does not stop the others from being evaluated."""
        self.serve(
            mock_merger,
            {
                "feature/pr-41": RuntimeError("unexpected payload"),
                "feature/pr-42": make_result(CombinedConclusion.FAILURE),
            },
        )

        result = await cycle.run(
            repository,
            fake_api,
            [
                PullRequestSummaryFactory.create(number=41),
                PullRequestSummaryFactory.create(number=42),
            ],
        )

        assert 41 not in result.states
        assert 42 in result.states
        assert len(result.events) == 1

    async def test_pull_requests_not_returned_are_dropped(
        self, cycle, mock_merger, gate, repository, fake_api
    ):
        """Test the mapping only holds the current candidates."""
        gate.commit({7: PullRequestCheckState.in_progress("old")})
        self.serve(mock_merger, {"feature/pr-42": make_result(CombinedConclusion.SUCCESS)})

        result = await cycle.run(
            repository, fake_api, [PullRequestSummaryFactory.create()]
        )

        assert set(result.states) == {42}

    async def test_run_does_not_touch_the_gate(
        self, cycle, mock_merger, gate, repository, fake_api
    ):
        """Test the cycle leaves committing to its caller."""
        self.serve(mock_merger, {"feature/pr-42": make_result(CombinedConclusion.FAILURE)})

        await cycle.run(repository, fake_api, [PullRequestSummaryFactory.create()])

        assert len(gate.states) == 0
        assert gate.get_statistics()["notifications_emitted"] == 0

    async def test_result_states_are_read_only(
        self, cycle, mock_merger, repository, fake_api
    ):
        """Test the produced mapping cannot be patched."""
        self.serve(mock_merger, {"feature/pr-42": make_result(CombinedConclusion.SUCCESS)})

        result = await cycle.run(
            repository, fake_api, [PullRequestSummaryFactory.create()]
        )

        with pytest.raises(TypeError):
            result.states[1] = PullRequestCheckState.in_progress("x")  # type: ignore[index]

    async def test_no_candidates(self, cycle, gate, repository, fake_api):
        """Test an empty candidate list drops every tracked PR."""
        gate.commit({42: PullRequestCheckState.in_progress("aaa")})

        result = await cycle.run(repository, fake_api, [])

        assert result.states == {}
        assert result.events == []


class TestPollCycleWithMerger:
    """Tests for PollCycle with the real merger and the in-memory API."""

    async def test_no_check_data_is_skipped(
        self, poll_cycle, repository, fake_api, local_commits
    ):
        """Test a PR whose check data is unavailable gets no state and no event."""
        local_commits.summaries["aaa"] = "Add widget support"

        result = await poll_cycle.run(
            repository, fake_api, [PullRequestSummaryFactory.create()]
        )

        assert result.states == {}
        assert result.events == []

    async def test_failing_check_run_is_reported(
        self, poll_cycle, repository, fake_api, local_commits
    ):
        """Test the head ref's failing run flows into the notification event."""
        fake_api.set_checks(
            "feature/pr-42", "aaa", check_runs=[APICheckRunFactory.failed(name="CI")]
        )
        local_commits.summaries["aaa"] = "Add widget support"

        result = await poll_cycle.run(
            repository, fake_api, [PullRequestSummaryFactory.create()]
        )

        assert [check.name for check in result.events[0].checks] == ["CI"]
        assert result.events[0].checks[0].conclusion == CheckConclusion.FAILURE

    async def test_pull_request_listed_twice_notifies_once(
        self, poll_cycle, repository, fake_api, local_commits
    ):
        """
        Why: At most one notification may be sent per pull request and head sha
        What: Tests a PR repeated in one listing is evaluated and reported once
        How: Passes the same failing PR twice to a single run
        """
        fake_api.set_checks(
            "feature/pr-42", "aaa", check_runs=[APICheckRunFactory.failed()]
        )
        local_commits.summaries["aaa"] = "Add widget support"
        pr = PullRequestSummaryFactory.create()

        result = await poll_cycle.run(repository, fake_api, [pr, pr])

        assert len(result.events) == 1
        assert result.evaluated == 1
        assert len(fake_api.calls_to("check_runs")) == 1
