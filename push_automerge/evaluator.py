"""Eligibility rules deciding whether a pull request may be merged.

Rules are an ordered sequence of ``(predicate, reason)`` pairs evaluated
first-match-wins. The platform-computed disqualifiers come before the title
policy so the policy is never consulted for a pull request GitHub has already
ruled out.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from .models import MergeableState, Proceed, PullRequestState, Skip

if typ.TYPE_CHECKING:
    from .models import Decision, PullRequestSnapshot

__all__ = [
    "PLATFORM_RULES",
    "EligibilityRule",
    "evaluate",
    "evaluate_platform_state",
]


@dataclasses.dataclass(frozen=True, slots=True)
class EligibilityRule:
    """Disqualify a snapshot when ``applies`` returns True."""

    applies: typ.Callable[[PullRequestSnapshot], bool]
    reason: typ.Callable[[PullRequestSnapshot], str]


PLATFORM_RULES: tuple[EligibilityRule, ...] = (
    EligibilityRule(
        applies=lambda pr: pr.mergeable_state is not MergeableState.MERGEABLE,
        reason=lambda pr: f"not mergeable: {pr.mergeable_state}",
    ),
    EligibilityRule(
        applies=lambda pr: pr.merged,
        reason=lambda _pr: "already merged",
    ),
    EligibilityRule(
        applies=lambda pr: pr.state is not PullRequestState.OPEN,
        reason=lambda pr: f"not open: {pr.state}",
    ),
)


def _policy_rule(should_merge: typ.Callable[[str], bool]) -> EligibilityRule:
    return EligibilityRule(
        applies=lambda pr: not should_merge(pr.title),
        reason=lambda _pr: "version bump not allowed by policy",
    )


def _first_match(
    snapshot: PullRequestSnapshot, rules: typ.Iterable[EligibilityRule]
) -> Decision:
    for rule in rules:
        if rule.applies(snapshot):
            return Skip(rule.reason(snapshot))
    return Proceed()


def evaluate_platform_state(snapshot: PullRequestSnapshot) -> Decision:
    """Apply only the platform-state rules (mergeability, merged, open)."""
    return _first_match(snapshot, PLATFORM_RULES)


def evaluate(
    snapshot: PullRequestSnapshot, should_merge: typ.Callable[[str], bool]
) -> Decision:
    """Decide whether ``snapshot`` may be merged.

    Parameters
    ----------
    snapshot
        The pull request state to judge.
    should_merge
        Title policy; only consulted when every platform rule passes.

    Returns
    -------
    Decision
        :class:`Skip` with the reason of the first failing rule, otherwise
        :class:`Proceed`.
    """
    return _first_match(snapshot, (*PLATFORM_RULES, _policy_rule(should_merge)))
