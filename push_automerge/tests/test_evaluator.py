"""Unit tests for the eligibility evaluator."""

from __future__ import annotations

import dataclasses
import itertools

import pytest

from push_automerge.evaluator import evaluate, evaluate_platform_state
from push_automerge.models import (
    MergeableState,
    Proceed,
    PullRequestSnapshot,
    PullRequestState,
    Skip,
)


def _snapshot(**overrides: object) -> PullRequestSnapshot:
    defaults: dict[str, object] = {
        "id": "PR_1",
        "mergeable_state": MergeableState.MERGEABLE,
        "merged": False,
        "state": PullRequestState.OPEN,
        "title": "chore: bump foo from 1.2.2 to 1.2.3",
    }
    return PullRequestSnapshot(**(defaults | overrides))  # type: ignore[arg-type]


def _allow(_title: str) -> bool:
    return True


def _deny(_title: str) -> bool:
    return False


@dataclasses.dataclass(frozen=True, slots=True)
class SkipCase:
    """Snapshot overrides and the skip reason they should produce."""

    overrides: dict[str, object]
    expected_reason: str
    test_id: str


@pytest.mark.parametrize(
    "case",
    [
        SkipCase(
            {"mergeable_state": MergeableState.CONFLICTING},
            "not mergeable: CONFLICTING",
            "conflicting",
        ),
        SkipCase(
            {"mergeable_state": MergeableState.UNKNOWN},
            "not mergeable: UNKNOWN",
            "unknown",
        ),
        SkipCase({"merged": True}, "already merged", "merged"),
        SkipCase({"state": PullRequestState.CLOSED}, "not open: CLOSED", "closed"),
    ],
    ids=lambda case: case.test_id,
)
def test_platform_rules_skip(case: SkipCase) -> None:
    """Each platform rule produces its own skip reason."""
    assert evaluate(_snapshot(**case.overrides), _allow) == Skip(case.expected_reason)


def test_policy_rejection_skips() -> None:
    """A title rejected by the policy is skipped."""
    assert evaluate(_snapshot(), _deny) == Skip("version bump not allowed by policy")


def test_eligible_pull_request_proceeds() -> None:
    """A mergeable, open, unmerged pull request allowed by policy proceeds."""
    assert evaluate(_snapshot(), _allow) == Proceed()


def test_mergeability_takes_precedence_over_merged() -> None:
    """Rule 1 fires before rule 2 when both apply."""
    snapshot = _snapshot(
        mergeable_state=MergeableState.UNKNOWN,
        merged=True,
        state=PullRequestState.MERGED,
    )
    assert evaluate(snapshot, _allow) == Skip("not mergeable: UNKNOWN")


def test_merged_skips_regardless_of_state() -> None:
    """Merged pull requests are skipped as merged even when no longer open."""
    snapshot = _snapshot(merged=True, state=PullRequestState.MERGED)
    assert evaluate(snapshot, _allow) == Skip("already merged")


def test_policy_not_consulted_for_ineligible_pull_request() -> None:
    """The title policy only runs once every platform rule has passed."""
    titles: list[str] = []

    def recording_policy(title: str) -> bool:
        titles.append(title)
        return True

    evaluate(_snapshot(mergeable_state=MergeableState.CONFLICTING), recording_policy)
    evaluate(_snapshot(merged=True), recording_policy)
    evaluate(_snapshot(state=PullRequestState.CLOSED), recording_policy)

    assert titles == []


def test_evaluate_is_deterministic() -> None:
    """Identical snapshots always yield identical decisions."""
    for mergeable, merged, state in itertools.product(
        MergeableState, (False, True), PullRequestState
    ):
        snapshot = _snapshot(mergeable_state=mergeable, merged=merged, state=state)
        first = evaluate(snapshot, _allow)
        assert evaluate(snapshot, _allow) == first
        assert evaluate(dataclasses.replace(snapshot), _allow) == first
        if mergeable is not MergeableState.MERGEABLE:
            assert isinstance(first, Skip)


def test_platform_state_ignores_policy() -> None:
    """evaluate_platform_state applies only the platform rules."""
    assert evaluate_platform_state(_snapshot()) == Proceed()
    assert evaluate_platform_state(_snapshot(merged=True)) == Skip("already merged")
