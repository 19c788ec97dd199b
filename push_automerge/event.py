"""Extract the fields the auto-merge step needs from a push event payload.

The parse functions return a tagged result (:class:`Parsed` or
:class:`ParseFailure`) instead of raising, so callers can inspect a failure
before deciding what to do with it. The ``get_*`` helpers unwrap those
results and raise :class:`~push_automerge.errors.MalformedPayloadError`.
"""

from __future__ import annotations

import dataclasses
import json
import os
import re
import typing as typ
from pathlib import Path

from .errors import MalformedPayloadError

if typ.TYPE_CHECKING:
    from .graphql_client import JsonValue

__all__ = [
    "ParseFailure",
    "ParseResult",
    "Parsed",
    "get_branch_name",
    "get_commit_headline",
    "get_pusher_name",
    "load_event",
    "parse_branch_name",
    "parse_commit_headline",
    "resolve_repository",
]

BRANCH_REFERENCE_PATTERN = re.compile(r"^refs/heads/(?P<name>.+)$", re.DOTALL)
LINE_BREAK_PATTERN = re.compile(r"\r\n|[\r\n\u2028\u2029]")


@dataclasses.dataclass(frozen=True, slots=True)
class Parsed[T]:
    """Successful parse carrying ``value``."""

    value: T


@dataclasses.dataclass(frozen=True, slots=True)
class ParseFailure:
    """Failed parse with a human-readable ``reason``."""

    reason: str


type ParseResult[T] = Parsed[T] | ParseFailure


def load_event(path: Path | None = None) -> dict[str, JsonValue]:
    """Load the push event payload.

    Parameters
    ----------
    path
        Location of the payload. Defaults to ``GITHUB_EVENT_PATH``.

    Raises
    ------
    MalformedPayloadError
        The payload is unavailable, not JSON, or not a JSON object.
    """
    if path is None:
        event_path = os.environ.get("GITHUB_EVENT_PATH")
        if not event_path:
            msg = "GITHUB_EVENT_PATH is not set; no push event to process."
            raise MalformedPayloadError(msg)
        path = Path(event_path)
    if not path.exists():
        msg = f"Event payload {path} does not exist."
        raise MalformedPayloadError(msg)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse event payload: {exc}"
        raise MalformedPayloadError(msg) from exc
    if not isinstance(payload, dict):
        msg = "Event payload is not a JSON object."
        raise MalformedPayloadError(msg)
    return payload


def parse_commit_headline(payload: dict[str, JsonValue]) -> ParseResult[str]:
    """Return the headline of the first pushed commit's message."""
    commits = payload.get("commits")
    if not isinstance(commits, list) or not commits:
        return ParseFailure("Push event payload has no commits.")
    first = commits[0]
    if not isinstance(first, dict):
        return ParseFailure("Push event commit is not an object.")
    message = first.get("message")
    if not isinstance(message, str):
        return ParseFailure("Push event commit has no message.")
    return Parsed(LINE_BREAK_PATTERN.split(message, maxsplit=1)[0])


def parse_branch_name(payload: dict[str, JsonValue]) -> ParseResult[str]:
    """Return the short branch name from the pushed ``refs/heads/...`` reference."""
    reference = payload.get("ref")
    if not isinstance(reference, str):
        return ParseFailure("Push event payload has no ref.")
    match = BRANCH_REFERENCE_PATTERN.match(reference)
    if match is None:
        return ParseFailure(f"Reference '{reference}' is not a branch reference.")
    return Parsed(match.group("name"))


def _unwrap[T](result: ParseResult[T]) -> T:
    if isinstance(result, ParseFailure):
        raise MalformedPayloadError(result.reason)
    return result.value


def get_commit_headline(payload: dict[str, JsonValue]) -> str:
    """Return the commit headline or raise :class:`MalformedPayloadError`."""
    return _unwrap(parse_commit_headline(payload))


def get_branch_name(payload: dict[str, JsonValue]) -> str:
    """Return the branch name or raise :class:`MalformedPayloadError`."""
    return _unwrap(parse_branch_name(payload))


def get_pusher_name(payload: dict[str, JsonValue]) -> str:
    """Return the login of the account that pushed."""
    pusher = payload.get("pusher")
    name = pusher.get("name") if isinstance(pusher, dict) else None
    if not isinstance(name, str) or not name:
        msg = "Push event payload has no pusher name."
        raise MalformedPayloadError(msg)
    return name


def _split_repo(full_name: str) -> tuple[str, str]:
    """Split a full repository name into owner and repo components."""
    parts = full_name.split("/")
    if len(parts) != 2 or not all(parts):
        msg = f"Repository '{full_name}' must be in owner/repo form."
        raise MalformedPayloadError(msg)
    return parts[0], parts[1]


def _get_repo_from_event(payload: dict[str, JsonValue] | None) -> str:
    """Return the repository full name from an event payload when available."""
    if not payload:
        return ""
    repository = payload.get("repository")
    repo = repository.get("full_name") if isinstance(repository, dict) else None
    if isinstance(repo, str):
        return repo.strip()
    return ""


def resolve_repository(
    repository: str | None, payload: dict[str, JsonValue] | None
) -> tuple[str, str]:
    """Resolve ``(owner, name)`` from input, event payload, or environment."""
    if repository and (candidate := repository.strip()):
        return _split_repo(candidate)
    if repo := _get_repo_from_event(payload):
        return _split_repo(repo)
    if repo := os.environ.get("GITHUB_REPOSITORY"):
        return _split_repo(repo.strip())
    msg = "Repository not provided. Set INPUT_REPOSITORY or GITHUB_REPOSITORY."
    raise MalformedPayloadError(msg)
