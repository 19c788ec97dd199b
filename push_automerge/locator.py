"""Resolve a pushed branch to the pull request whose head it is."""

from __future__ import annotations

import enum
import logging
import typing as typ

from .errors import TransportError
from .models import (
    MergeableState,
    PullRequestSnapshot,
    PullRequestState,
    ReviewEdge,
    ReviewState,
)
from .queries import FIND_PULL_REQUEST_QUERY

if typ.TYPE_CHECKING:
    from .graphql_client import GraphQLClient, JsonValue

__all__ = ["locate", "snapshot_from_node"]

logger = logging.getLogger(__name__)


def _require_str(node: dict[str, JsonValue], key: str) -> str:
    value = node.get(key)
    if not isinstance(value, str):
        msg = f"Pull request field '{key}' missing from GitHub response."
        raise TransportError(msg)
    return value


def _as_enum[E: enum.StrEnum](enum_type: type[E], value: str, field: str) -> E:
    try:
        return enum_type(value)
    except ValueError as exc:
        msg = f"Unexpected {field} value '{value}' in GitHub response."
        raise TransportError(msg) from exc


def _review_edges(node: dict[str, JsonValue]) -> tuple[ReviewEdge, ...]:
    """Extract review edges in platform order."""
    reviews = node.get("reviews")
    edges = reviews.get("edges") if isinstance(reviews, dict) else None
    if not isinstance(edges, list):
        return ()
    parsed: list[ReviewEdge] = []
    for edge in edges:
        review = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(review, dict):
            continue
        state = _require_str(review, "state")
        parsed.append(
            ReviewEdge(
                id=_require_str(review, "id"),
                state=_as_enum(ReviewState, state, "review state"),
            )
        )
    return tuple(parsed)


def snapshot_from_node(node: dict[str, JsonValue]) -> PullRequestSnapshot:
    """Build a :class:`PullRequestSnapshot` from a ``pullRequests`` node.

    Raises
    ------
    TransportError
        The node does not have the expected shape.
    """
    merged = node.get("merged")
    if not isinstance(merged, bool):
        msg = "Pull request field 'merged' missing from GitHub response."
        raise TransportError(msg)
    return PullRequestSnapshot(
        id=_require_str(node, "id"),
        mergeable_state=_as_enum(
            MergeableState, _require_str(node, "mergeable"), "mergeable"
        ),
        merged=merged,
        state=_as_enum(PullRequestState, _require_str(node, "state"), "state"),
        title=_require_str(node, "title"),
        review_edges=_review_edges(node),
    )


def locate(
    client: GraphQLClient,
    branch_name: str,
    repository_owner: str,
    repository_name: str,
) -> PullRequestSnapshot | None:
    """Return the pull request whose head is ``branch_name``, if any.

    Issues exactly one query. Failures are not retried here and propagate as
    :class:`~push_automerge.errors.TransportError`.

    Parameters
    ----------
    client
        GraphQL client used for the query.
    branch_name
        Short name of the pushed branch.
    repository_owner
        Owner (user or organisation) of the repository.
    repository_name
        Name of the repository.

    Returns
    -------
    PullRequestSnapshot or None
        A fresh snapshot, or None when no pull request uses the branch.
    """
    data = client.request(
        FIND_PULL_REQUEST_QUERY,
        {
            "referenceName": branch_name,
            "repositoryName": repository_name,
            "repositoryOwner": repository_owner,
        },
    )
    repository = data.get("repository")
    if not isinstance(repository, dict):
        return None
    pull_requests = repository.get("pullRequests")
    nodes = pull_requests.get("nodes") if isinstance(pull_requests, dict) else None
    if not isinstance(nodes, list) or not nodes:
        return None
    first = nodes[0]
    if not isinstance(first, dict):
        msg = "Pull request node has an unexpected shape in GitHub response."
        raise TransportError(msg)

    snapshot = snapshot_from_node(first)
    logger.info(
        "Found pull request %s for %s/%s@%s: mergeable=%s merged=%s state=%s title=%r",
        snapshot.id,
        repository_owner,
        repository_name,
        branch_name,
        snapshot.mergeable_state,
        snapshot.merged,
        snapshot.state,
        snapshot.title,
    )
    return snapshot
