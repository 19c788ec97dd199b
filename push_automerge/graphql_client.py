"""GitHub GraphQL API client.

This module provides a small GraphQL client for the GitHub API. Failures are
raised as :class:`~push_automerge.errors.TransportError`, flagged as
retryable when the cause is transient (connection errors, rate limiting and
server errors). Each request is a single round trip and the retry decision
is left to the caller.
"""

from __future__ import annotations

import json
import logging

import httpx

from .errors import GraphQLResponseError, TransportError

__all__ = ["GRAPHQL_ENDPOINT", "GraphQLClient", "JsonValue"]

GRAPHQL_ENDPOINT = "https://api.github.com/graphql"

# Type alias for JSON-compatible values (parsed from json.loads)
type JsonValue = (
    str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]
)

logger = logging.getLogger(__name__)


def _is_rate_limited(response: httpx.Response) -> bool:
    """Check if response indicates rate limiting."""
    if response.status_code not in (403, 429):
        return False
    if "retry-after" in response.headers:
        return True
    return response.headers.get("x-ratelimit-remaining") == "0"


def _check_status(response: httpx.Response) -> None:
    """Raise :class:`TransportError` for non-success HTTP statuses."""
    if _is_rate_limited(response):
        msg = f"GitHub API rate limited ({response.status_code}): {response.text}"
        raise TransportError(msg, retryable=True)

    if 400 <= response.status_code < 500:
        msg = f"GitHub API error {response.status_code}: {response.text}"
        raise TransportError(msg)

    if response.status_code >= 500:
        msg = f"GitHub API error {response.status_code}: {response.text}"
        raise TransportError(msg, retryable=True)


def _parse_graphql_response(response: httpx.Response) -> dict[str, JsonValue]:
    """Parse and validate a GraphQL response, returning the data payload."""
    try:
        payload = response.json()
    except json.JSONDecodeError as exc:
        msg = f"GitHub API response was not valid JSON: {exc}"
        raise TransportError(msg) from exc

    if not isinstance(payload, dict):
        msg = "GitHub API response was not a JSON object."
        raise TransportError(msg)

    errors = payload.get("errors")
    if errors:
        if not isinstance(errors, list):
            errors = [{"message": str(errors)}]
        raise GraphQLResponseError(
            [error if isinstance(error, dict) else {"message": str(error)} for error in errors]
        )

    data = payload.get("data")
    if data is None:
        msg = "GitHub API returned no data."
        raise TransportError(msg)
    if not isinstance(data, dict):
        msg = "GitHub API returned invalid data payload."
        raise TransportError(msg)
    return data


class GraphQLClient:
    """Send GraphQL documents to the GitHub API.

    Each :meth:`request` is a single round trip; retry decisions belong to
    the caller.

    Parameters
    ----------
    token
        Token sent as a bearer credential.
    endpoint
        GraphQL endpoint URL.
    """

    def __init__(self, token: str, *, endpoint: str = GRAPHQL_ENDPOINT) -> None:
        self._token = token
        self._endpoint = endpoint

    def _post(self, query: str, variables: dict[str, JsonValue]) -> httpx.Response:
        """Send the request, mapping connection failures to TransportError."""
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
        }
        try:
            with httpx.Client(timeout=30) as client:
                return client.post(
                    self._endpoint,
                    json={"query": query, "variables": variables},
                    headers=headers,
                )
        except httpx.TransportError as exc:
            msg = f"GitHub API request failed: connection error ({exc})"
            raise TransportError(msg, retryable=True) from exc

    def request(
        self, query: str, variables: dict[str, JsonValue]
    ) -> dict[str, JsonValue]:
        """Execute a GraphQL request and return the data payload.

        Raises
        ------
        GraphQLResponseError
            The API answered with an ``errors`` payload.
        TransportError
            The request could not be completed.
        """
        response = self._post(query, variables)
        logger.debug("GitHub GraphQL response status: %s", response.status_code)
        _check_status(response)
        return _parse_graphql_response(response)
