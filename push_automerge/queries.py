"""GraphQL documents used by the push auto-merge step."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from .models import ReviewEdge

__all__ = [
    "APPROVE_AND_MERGE_MUTATION",
    "FIND_PULL_REQUEST_QUERY",
    "MERGE_MUTATION",
    "merge_mutation_for",
]

FIND_PULL_REQUEST_QUERY = """
query FindPullRequestInfoAndReviews(
  $referenceName: String!
  $repositoryName: String!
  $repositoryOwner: String!
) {
  repository(name: $repositoryName, owner: $repositoryOwner) {
    pullRequests(headRefName: $referenceName, first: 1) {
      nodes {
        id
        mergeable
        merged
        reviews(last: 1) {
          edges {
            node {
              id
              state
            }
          }
        }
        state
        title
      }
    }
  }
}
"""

MERGE_MUTATION = """
mutation MergePullRequest(
  $commitHeadline: String!
  $mergeMethod: PullRequestMergeMethod!
  $pullRequestId: ID!
) {
  mergePullRequest(
    input: {
      commitBody: " "
      commitHeadline: $commitHeadline
      mergeMethod: $mergeMethod
      pullRequestId: $pullRequestId
    }
  ) {
    clientMutationId
  }
}
"""

APPROVE_AND_MERGE_MUTATION = """
mutation ApproveAndMergePullRequest(
  $commitHeadline: String!
  $mergeMethod: PullRequestMergeMethod!
  $pullRequestId: ID!
) {
  addPullRequestReview(input: {event: APPROVE, pullRequestId: $pullRequestId}) {
    clientMutationId
  }
  mergePullRequest(
    input: {
      commitBody: " "
      commitHeadline: $commitHeadline
      mergeMethod: $mergeMethod
      pullRequestId: $pullRequestId
    }
  ) {
    clientMutationId
  }
}
"""


def merge_mutation_for(review_edge: ReviewEdge | None) -> str:
    """Return the merge document, approving first unless already approved."""
    if review_edge is not None and review_edge.approved:
        return MERGE_MUTATION
    return APPROVE_AND_MERGE_MUTATION
