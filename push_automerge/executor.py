"""Merge a pull request, retrying after transient failures.

The executor is a bounded loop over attempts ``retry_count`` through
``maximum_retries``. A retryable failure refreshes the pull request before the
next attempt. A non-retryable failure, or a retryable one on the final
attempt, ends the loop with :class:`~push_automerge.errors.MergeFailure`.
"""

from __future__ import annotations

import dataclasses
import logging
import time
import typing as typ

from .errors import (
    GraphQLResponseError,
    MergeFailure,
    MergeFailureCause,
    NonRetryableMergeFailure,
    RetryableMergeFailure,
    TransportError,
)
from .evaluator import evaluate_platform_state
from .models import Skip
from .queries import merge_mutation_for

if typ.TYPE_CHECKING:
    from .graphql_client import GraphQLClient
    from .models import MergeAttempt, PullRequestSnapshot

__all__ = ["RETRYABLE_MESSAGES", "classify_graphql_errors", "merge_with_retry"]

logger = logging.getLogger(__name__)

RETRYABLE_MESSAGES: typ.Final[tuple[str, ...]] = (
    "base branch was modified",
    "head branch was modified",
    "pull request is in unstable state",
    "was submitted too quickly",
)


class _MergedConcurrently(Exception):  # noqa: N818
    """Internal signal: the refreshed pull request is already merged."""


def classify_graphql_errors(errors: list[dict[str, typ.Any]]) -> bool:
    """Return True when every GraphQL error reports a transient condition."""
    if not errors:
        return False
    return all(
        any(
            fragment in str(error.get("message", "")).lower()
            for fragment in RETRYABLE_MESSAGES
        )
        for error in errors
    )


def _merge(client: GraphQLClient, attempt: MergeAttempt, merge_method: str) -> None:
    """Issue one merge mutation, translating failures into merge failures."""
    try:
        client.request(
            merge_mutation_for(attempt.review_edge),
            {
                "commitHeadline": attempt.commit_headline,
                "mergeMethod": merge_method,
                "pullRequestId": attempt.pull_request_id,
            },
        )
    except GraphQLResponseError as exc:
        if classify_graphql_errors(exc.errors):
            raise RetryableMergeFailure(str(exc)) from exc
        raise NonRetryableMergeFailure(str(exc)) from exc
    except TransportError as exc:
        if exc.retryable:
            raise RetryableMergeFailure(str(exc)) from exc
        raise


def _refreshed(
    attempt: MergeAttempt,
    refresh: typ.Callable[[], PullRequestSnapshot | None],
) -> MergeAttempt:
    """Return the next attempt built from a freshly fetched snapshot."""
    logger.info("Refreshing pull request %s before retrying.", attempt.pull_request_id)
    snapshot = refresh()
    if snapshot is None:
        msg = (
            f"Pull request {attempt.pull_request_id} is no longer associated "
            "with the branch."
        )
        raise NonRetryableMergeFailure(msg)
    if snapshot.id != attempt.pull_request_id:
        msg = (
            f"Branch now points at pull request {snapshot.id}, "
            f"not {attempt.pull_request_id}."
        )
        raise NonRetryableMergeFailure(msg)
    if snapshot.merged:
        raise _MergedConcurrently
    decision = evaluate_platform_state(snapshot)
    if isinstance(decision, Skip):
        msg = f"Pull request is no longer eligible: {decision.reason}"
        raise NonRetryableMergeFailure(msg)
    return dataclasses.replace(
        attempt,
        retry_count=attempt.retry_count + 1,
        review_edge=snapshot.latest_review,
    )


def merge_with_retry(
    client: GraphQLClient,
    attempt: MergeAttempt,
    *,
    refresh: typ.Callable[[], PullRequestSnapshot | None],
    merge_method: str,
    retry_delay: float = 0.0,
    sleep: typ.Callable[[float], None] = time.sleep,
) -> None:
    """Merge the pull request named by ``attempt``.

    Parameters
    ----------
    client
        GraphQL client used for the merge mutation.
    attempt
        Initial attempt; ``retry_count`` is normally 1.
    refresh
        Fetches a new snapshot of the same pull request. Always called, and
        completed, before a retry is issued.
    merge_method
        GraphQL ``PullRequestMergeMethod`` value (``SQUASH``, ``MERGE`` or
        ``REBASE``).
    retry_delay
        Seconds to wait before refreshing. Zero retries immediately.
    sleep
        Sleep function, replaceable in tests.

    Raises
    ------
    MergeFailure
        The retry budget was exhausted or a non-retryable failure occurred.
    TransportError
        A non-retryable transport failure occurred.
    """
    current = attempt
    issued = 0
    last_failure: RetryableMergeFailure | None = None

    for retry_count in range(attempt.retry_count, attempt.maximum_retries + 1):
        if retry_count != current.retry_count:
            current = dataclasses.replace(current, retry_count=retry_count)
        issued += 1
        try:
            _merge(client, current, merge_method)
        except NonRetryableMergeFailure as exc:
            logger.error(
                "Merge attempt %d/%d failed and cannot be retried: %s",
                retry_count,
                current.maximum_retries,
                exc,
            )
            msg = f"Merge rejected by GitHub: {exc}"
            raise MergeFailure(
                msg, cause=MergeFailureCause.NON_RETRYABLE, attempts=issued
            ) from exc
        except RetryableMergeFailure as exc:
            last_failure = exc
            logger.warning(
                "Merge attempt %d/%d failed: %s",
                retry_count,
                current.maximum_retries,
                exc,
            )
            if retry_count >= current.maximum_retries:
                break
            if retry_delay > 0:
                sleep(retry_delay)
            try:
                current = _refreshed(current, refresh)
            except _MergedConcurrently:
                logger.info(
                    "Pull request %s was merged concurrently.", current.pull_request_id
                )
                return
            except NonRetryableMergeFailure as refresh_exc:
                logger.error("Giving up on merge: %s", refresh_exc)
                raise MergeFailure(
                    str(refresh_exc),
                    cause=MergeFailureCause.NON_RETRYABLE,
                    attempts=issued,
                ) from refresh_exc
            continue

        logger.info(
            "Merged pull request %s on attempt %d/%d.",
            current.pull_request_id,
            retry_count,
            current.maximum_retries,
        )
        return

    logger.error("Merge failed after %d attempts.", issued)
    msg = f"Merge failed after {issued} attempts: {last_failure}"
    raise MergeFailure(msg, cause=MergeFailureCause.RETRIES_EXHAUSTED, attempts=issued)
