"""Coordinate one push event: actor check, lookup, evaluation and merge."""

from __future__ import annotations

import dataclasses
import enum
import functools
import logging
import time
import typing as typ

from . import event as push_event
from .evaluator import evaluate
from .executor import merge_with_retry
from .locator import locate
from .models import MergeAttempt, Skip
from .policy import should_merge

if typ.TYPE_CHECKING:
    from .config import AutomergeConfig
    from .graphql_client import GraphQLClient, JsonValue

__all__ = ["HandlerResult", "HandlerStatus", "handle_push"]

logger = logging.getLogger(__name__)


class HandlerStatus(enum.StrEnum):
    """Terminal outcome of a successful run."""

    IGNORED = "ignored"
    NOT_FOUND = "not-found"
    SKIPPED = "skipped"
    MERGED = "merged"


@dataclasses.dataclass(frozen=True, slots=True)
class HandlerResult:
    """Outcome reported by :func:`handle_push`.

    Attributes
    ----------
    status : HandlerStatus
        What the run did.
    reason : str
        Human-readable detail, e.g. the eligibility skip reason.
    branch : str or None
        Pushed branch, once known.
    pull_request_id : str or None
        Located pull request, once known.
    """

    status: HandlerStatus
    reason: str
    branch: str | None = None
    pull_request_id: str | None = None


def handle_push(
    payload: dict[str, JsonValue],
    *,
    client: GraphQLClient,
    config: AutomergeConfig,
    repository: tuple[str, str],
    sleep: typ.Callable[[float], None] = time.sleep,
) -> HandlerResult:
    """Merge the pull request behind a push by the automation account.

    Pushes by any other account are ignored without touching the network.

    Parameters
    ----------
    payload
        The push event payload.
    client
        GraphQL client for the lookup and merge.
    config
        Validated run configuration.
    repository
        ``(owner, name)`` of the repository the push went to.
    sleep
        Sleep function forwarded to the merge executor.

    Returns
    -------
    HandlerResult
        The terminal outcome when no error occurred.

    Raises
    ------
    MalformedPayloadError
        The payload does not describe a branch push.
    TransportError
        The pull request lookup failed.
    MergeFailure
        The merge was attempted and did not succeed.
    """
    pusher = push_event.get_pusher_name(payload)
    if pusher != config.github_login:
        logger.info(
            "Push made by %s, not %s, skipping.", pusher, config.github_login
        )
        return HandlerResult(
            HandlerStatus.IGNORED, f"pusher {pusher} is not {config.github_login}"
        )

    branch = push_event.get_branch_name(payload)
    owner, name = repository
    lookup = functools.partial(locate, client, branch, owner, name)
    snapshot = lookup()
    if snapshot is None:
        logger.warning("Unable to find a pull request for branch %s.", branch)
        return HandlerResult(
            HandlerStatus.NOT_FOUND, "no pull request for branch", branch=branch
        )

    decision = evaluate(
        snapshot, functools.partial(should_merge, preset=config.preset)
    )
    if isinstance(decision, Skip):
        logger.info("Pull request %s skipped: %s.", snapshot.id, decision.reason)
        return HandlerResult(
            HandlerStatus.SKIPPED,
            decision.reason,
            branch=branch,
            pull_request_id=snapshot.id,
        )

    attempt = MergeAttempt(
        pull_request_id=snapshot.id,
        commit_headline=push_event.get_commit_headline(payload),
        retry_count=1,
        maximum_retries=config.maximum_retries,
        review_edge=snapshot.latest_review,
    )
    merge_with_retry(
        client,
        attempt,
        refresh=lookup,
        merge_method=config.merge_method,
        retry_delay=config.retry_delay,
        sleep=sleep,
    )
    logger.info("Pull request %s merged.", snapshot.id)
    return HandlerResult(
        HandlerStatus.MERGED, "merged", branch=branch, pull_request_id=snapshot.id
    )
