"""Merge the pull request behind a push made by the automation account.

This entrypoint runs as a GitHub Actions step on ``push`` events. When the
push was made by the configured account (``dependabot[bot]`` by default), it
locates the pull request whose head is the pushed branch, checks that the
pull request is eligible, and merges it through the GitHub GraphQL API,
retrying after transient failures.

Eligibility Rules
-----------------
Checked in order; the first failing rule skips the pull request:

- GitHub reports the pull request as ``MERGEABLE``
- The pull request is not already merged
- The pull request is ``OPEN``
- The title's version bump is allowed by the preset (if any)

Environment Variables
---------------------
INPUT_GITHUB_TOKEN : str
    GitHub token with ``contents:write`` and ``pull-requests:write`` permissions.
INPUT_GITHUB_LOGIN : str, optional
    Account whose pushes are acted on. Default: ``dependabot[bot]``.
INPUT_MAXIMUM_RETRIES : int, optional
    Maximum number of merge attempts. Default: ``3``.
INPUT_RETRY_DELAY : float, optional
    Seconds to wait before refreshing and retrying. Default: ``0``.
INPUT_MERGE_METHOD : str, optional
    Merge method: ``squash``, ``merge``, or ``rebase``. Default: ``squash``.
INPUT_PRESET : str, optional
    ``DEPENDABOT_MINOR`` or ``DEPENDABOT_PATCH``. Default: no restriction.
INPUT_REPOSITORY : str, optional
    Repository override in ``owner/repo`` form.

Side Effects
------------
Approves (unless the latest review already approves) and merges the pull
request. Writes ``automerge_*`` key=value lines to stdout, and on failure to
stderr with exit status 1.
"""

from __future__ import annotations

import dataclasses
import sys
import typing as typ

from cyclopts import App, Parameter

from .config import DEFAULT_GITHUB_LOGIN, build_config, normalize_input_env
from .errors import AutomergeError, MergeFailure
from .event import load_event, resolve_repository
from .graphql_client import GraphQLClient
from .handler import HandlerResult, handle_push
from .output import configure_logging, emit, fail

__all__ = ["AutomergeOptions", "app", "main", "run"]

app = App(help="Merge the pull request behind an automation account's push.")


@dataclasses.dataclass(frozen=True, slots=True)
class AutomergeOptions:
    """CLI options for automerge execution."""

    github_login: typ.Annotated[
        str,
        Parameter(
            help="Account whose pushes trigger a merge.",
            env_var="INPUT_GITHUB_LOGIN",
        ),
    ] = DEFAULT_GITHUB_LOGIN
    maximum_retries: typ.Annotated[
        int,
        Parameter(
            help="Maximum number of merge attempts.",
            env_var="INPUT_MAXIMUM_RETRIES",
        ),
    ] = 3
    retry_delay: typ.Annotated[
        float,
        Parameter(
            help="Seconds to wait before refreshing and retrying a failed merge.",
            env_var="INPUT_RETRY_DELAY",
        ),
    ] = 0.0
    merge_method: typ.Annotated[
        str,
        Parameter(
            help="Merge method to use (squash, merge, rebase).",
            env_var="INPUT_MERGE_METHOD",
        ),
    ] = "squash"
    preset: typ.Annotated[
        str | None,
        Parameter(
            help="Version bump policy (DEPENDABOT_MINOR, DEPENDABOT_PATCH).",
            env_var="INPUT_PRESET",
        ),
    ] = None
    repository: typ.Annotated[
        str | None,
        Parameter(
            help="Repository override in owner/repo form.",
            env_var="INPUT_REPOSITORY",
        ),
    ] = None


DEFAULT_AUTOMERGE_OPTIONS = AutomergeOptions()


def _emit_result(result: HandlerResult) -> None:
    """Emit structured result output for the calling workflow."""
    emit("automerge_status", result.status)
    emit("automerge_reason", result.reason)
    emit("automerge_branch", result.branch)
    emit("automerge_pull_request_id", result.pull_request_id)


@app.default
def main(
    *,
    github_token: typ.Annotated[
        str, Parameter(required=True, env_var="INPUT_GITHUB_TOKEN")
    ],
    options: AutomergeOptions = DEFAULT_AUTOMERGE_OPTIONS,
) -> None:
    """Handle the current push event and merge its pull request when allowed.

    Parameters
    ----------
    github_token : str
        GitHub token with ``contents:write`` and ``pull-requests:write``
        permissions. Read from ``INPUT_GITHUB_TOKEN`` environment variable.
    options : AutomergeOptions
        Expected account, retry budget, merge method, preset and repository
        override.

    Raises
    ------
    SystemExit
        Exits with code 1 on invalid configuration, malformed event payloads,
        GitHub API failures, or when the merge does not succeed. Error details
        are logged to stderr.
    """
    configure_logging()
    try:
        config = build_config(
            github_login=options.github_login,
            maximum_retries=options.maximum_retries,
            merge_method=options.merge_method,
            preset=options.preset,
            retry_delay=options.retry_delay,
        )
    except ValueError as exc:
        fail(str(exc))

    try:
        payload = load_event()
        repository = resolve_repository(options.repository, payload)
        result = handle_push(
            payload,
            client=GraphQLClient(github_token),
            config=config,
            repository=repository,
        )
    except MergeFailure as exc:
        emit("automerge_failure_cause", exc.cause, stream=sys.stderr)
        fail(str(exc))
    except AutomergeError as exc:
        fail(str(exc))

    _emit_result(result)


def run() -> None:
    """Console script entrypoint: normalise inputs, then dispatch to the app."""
    normalize_input_env()
    app()


if __name__ == "__main__":
    run()
