"""Data contracts passed between the locator, evaluator and executor."""

from __future__ import annotations

import dataclasses
import enum

__all__ = [
    "Decision",
    "MergeAttempt",
    "MergeableState",
    "Proceed",
    "PullRequestSnapshot",
    "PullRequestState",
    "ReviewEdge",
    "ReviewState",
    "Skip",
]


class MergeableState(enum.StrEnum):
    """GitHub's assessment of whether a pull request merges cleanly."""

    MERGEABLE = "MERGEABLE"
    CONFLICTING = "CONFLICTING"
    UNKNOWN = "UNKNOWN"


class PullRequestState(enum.StrEnum):
    """Lifecycle state of a pull request."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"


class ReviewState(enum.StrEnum):
    """State of a single pull request review."""

    PENDING = "PENDING"
    COMMENTED = "COMMENTED"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    DISMISSED = "DISMISSED"


@dataclasses.dataclass(frozen=True, slots=True)
class ReviewEdge:
    """One review attached to a pull request.

    Attributes
    ----------
    id : str
        The GraphQL node ID of the review.
    state : ReviewState
        Whether the review approved, requested changes or only commented.
    """

    id: str
    state: ReviewState

    @property
    def approved(self) -> bool:
        """Return True when the review is an approval."""
        return self.state is ReviewState.APPROVED


@dataclasses.dataclass(frozen=True, slots=True)
class PullRequestSnapshot:
    """Point-in-time view of one pull request.

    Attributes
    ----------
    id : str
        The GraphQL node ID used for mutations. Stable across retries.
    mergeable_state : MergeableState
        Platform-computed mergeability.
    merged : bool
        Whether the pull request has already been merged.
    state : PullRequestState
        Open, closed or merged.
    title : str
        Pull request title, consulted by the merge policy.
    review_edges : tuple[ReviewEdge, ...]
        Reviews in platform order, most recent last.
    """

    id: str
    mergeable_state: MergeableState
    merged: bool
    state: PullRequestState
    title: str
    review_edges: tuple[ReviewEdge, ...] = ()

    @property
    def latest_review(self) -> ReviewEdge | None:
        """Return the most recent review, or None when there are no reviews."""
        return self.review_edges[-1] if self.review_edges else None


@dataclasses.dataclass(frozen=True, slots=True)
class MergeAttempt:
    """Inputs for one merge mutation; only ``retry_count`` advances."""

    pull_request_id: str
    commit_headline: str
    retry_count: int
    maximum_retries: int
    review_edge: ReviewEdge | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class Skip:
    """The pull request must not be merged, for ``reason``."""

    reason: str


@dataclasses.dataclass(frozen=True, slots=True)
class Proceed:
    """The pull request is eligible for merging."""


type Decision = Skip | Proceed
