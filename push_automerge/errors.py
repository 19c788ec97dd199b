"""Error types shared across the push auto-merge helpers."""

from __future__ import annotations

import enum
import typing as typ

__all__ = [
    "AutomergeError",
    "GraphQLResponseError",
    "MalformedPayloadError",
    "MergeFailure",
    "MergeFailureCause",
    "NonRetryableMergeFailure",
    "RetryableMergeFailure",
    "TransportError",
]


class AutomergeError(RuntimeError):
    """Raised when the auto-merge run cannot continue."""


class MalformedPayloadError(AutomergeError):
    """Raised when the push event payload does not have the expected shape."""


class TransportError(AutomergeError):
    """Raised when a GitHub API round trip fails.

    Parameters
    ----------
    message
        Human-readable description of the failure.
    retryable
        True when the failure is transient (connection error, rate limiting
        or a server error) and the request may succeed if sent again.
    """

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class GraphQLResponseError(TransportError):
    """Raised when the GraphQL API answers with an ``errors`` payload."""

    def __init__(self, errors: list[dict[str, typ.Any]]) -> None:
        messages = "; ".join(str(error.get("message", error)) for error in errors)
        super().__init__(f"GitHub API GraphQL errors: {messages}")
        self.errors = errors


class RetryableMergeFailure(AutomergeError):
    """Merge mutation failed because of a transient or concurrent change."""


class NonRetryableMergeFailure(AutomergeError):
    """Merge mutation was rejected and sending it again cannot help."""


class MergeFailureCause(enum.StrEnum):
    """Why the merge executor gave up."""

    RETRIES_EXHAUSTED = "retries-exhausted"
    NON_RETRYABLE = "non-retryable"


class MergeFailure(AutomergeError):
    """Raised when the merge executor ends in its failed terminal state."""

    def __init__(self, message: str, *, cause: MergeFailureCause, attempts: int) -> None:
        super().__init__(message)
        self.cause = cause
        self.attempts = attempts
