"""Pytest configuration for the push auto-merge tests."""

from __future__ import annotations

import collections
import collections.abc as cabc
import logging
import typing as typ

import pytest

BOT_LOGIN = "dependabot[bot]"


class FakeGraphQLClient:
    """Stand-in for :class:`push_automerge.graphql_client.GraphQLClient`.

    Each call to :meth:`request` records the document and variables, then
    returns (or raises) the next queued response.
    """

    def __init__(self, responses: cabc.Iterable[dict[str, typ.Any] | Exception]) -> None:
        self._responses = collections.deque(responses)
        self.calls: list[tuple[str, dict[str, typ.Any]]] = []

    def request(self, query: str, variables: dict[str, typ.Any]) -> dict[str, typ.Any]:
        """Record the call and replay the next canned response."""
        self.calls.append((query, variables))
        if not self._responses:
            msg = f"Unexpected GraphQL request: {query.strip().splitlines()[0]}"
            raise AssertionError(msg)
        response = self._responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def queries(self) -> list[tuple[str, dict[str, typ.Any]]]:
        """Return the recorded query calls."""
        return [call for call in self.calls if call[0].lstrip().startswith("query")]

    @property
    def mutations(self) -> list[tuple[str, dict[str, typ.Any]]]:
        """Return the recorded mutation calls."""
        return [call for call in self.calls if call[0].lstrip().startswith("mutation")]

    @property
    def pending(self) -> int:
        """Return the number of responses not yet consumed."""
        return len(self._responses)


def build_pull_request_node(**overrides: object) -> dict[str, object]:
    """Return a ``pullRequests`` node as GitHub serialises it."""
    node: dict[str, object] = {
        "id": "PR_kwDOA1",
        "mergeable": "MERGEABLE",
        "merged": False,
        "reviews": {"edges": []},
        "state": "OPEN",
        "title": "chore: bump foo from 1.2.2 to 1.2.3",
    }
    node.update(overrides)
    return node


def build_lookup_response(*nodes: dict[str, object]) -> dict[str, object]:
    """Wrap pull request nodes in the lookup query's data payload."""
    return {"repository": {"pullRequests": {"nodes": list(nodes)}}}


def build_push_payload(**overrides: object) -> dict[str, object]:
    """Return a push event payload made by the bot account."""
    payload: dict[str, object] = {
        "pusher": {"name": BOT_LOGIN},
        "ref": "refs/heads/dependabot/npm_and_yarn/foo-1.2.3",
        "commits": [
            {"message": "chore: bump foo from 1.2.2 to 1.2.3\n\nBumps foo."},
        ],
        "repository": {"full_name": "acme/example"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def fake_client() -> type[FakeGraphQLClient]:
    """Return the fake GraphQL client class."""
    return FakeGraphQLClient


@pytest.fixture
def pull_request_node() -> cabc.Callable[..., dict[str, object]]:
    """Return a factory for pull request nodes."""
    return build_pull_request_node


@pytest.fixture
def lookup_response() -> cabc.Callable[..., dict[str, object]]:
    """Return a factory for lookup query responses."""
    return build_lookup_response


@pytest.fixture
def push_payload() -> cabc.Callable[..., dict[str, object]]:
    """Return a factory for push event payloads."""
    return build_push_payload


@pytest.fixture(autouse=True)
def reset_package_logging() -> cabc.Iterator[None]:
    """Remove handlers installed by ``configure_logging`` after each test."""
    yield
    package_logger = logging.getLogger("push_automerge")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_push_automerge_handler", False):
            package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
