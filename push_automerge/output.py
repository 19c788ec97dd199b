"""Shared output and logging utilities for the push auto-merge step.

Decision results are written as ``key=value`` lines on stdout so the calling
workflow can grep or capture them. Diagnostic logging goes to stderr, with
warnings and errors rendered as GitHub workflow commands so they surface as
annotations on the run summary.
"""

from __future__ import annotations

import json
import logging
import sys
import typing as typ

__all__ = ["GithubActionsFormatter", "configure_logging", "emit", "fail"]

_WORKFLOW_COMMANDS: typ.Final[dict[int, str]] = {
    logging.WARNING: "::warning::",
    logging.ERROR: "::error::",
    logging.CRITICAL: "::error::",
}


def _log_value(value: object) -> str:
    """Format a value for key=value log output."""
    if value is None:
        return ""
    if isinstance(value, tuple):
        value = list(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def emit(key: str, value: object, *, stream: typ.TextIO | None = None) -> None:
    """Print a key=value pair to stdout or the specified stream."""
    target = stream if stream is not None else sys.stdout
    print(f"{key}={_log_value(value)}", file=target)


def fail(message: str) -> typ.NoReturn:
    """Log an error and exit with status code 1."""
    emit("automerge_status", "error", stream=sys.stderr)
    emit("automerge_error", message, stream=sys.stderr)
    raise SystemExit(1)


def _escape_command_data(message: str) -> str:
    """Escape a workflow command message so it stays on one line."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class GithubActionsFormatter(logging.Formatter):
    """Prefix warnings and errors with the matching workflow command."""

    def format(self, record: logging.LogRecord) -> str:
        """Return the formatted record, annotated for GitHub Actions."""
        message = super().format(record)
        prefix = _WORKFLOW_COMMANDS.get(record.levelno)
        if prefix is None:
            return message
        return f"{prefix}{_escape_command_data(message)}"


def configure_logging(
    level: int = logging.INFO, *, stream: typ.TextIO | None = None
) -> logging.Handler:
    """Route ``push_automerge`` log records to ``stream`` (stderr by default).

    Calling this more than once replaces the previously installed handler
    instead of stacking duplicates.

    Parameters
    ----------
    level
        Minimum level to emit.
    stream
        Destination stream. Defaults to :data:`sys.stderr`.

    Returns
    -------
    logging.Handler
        The installed handler.
    """
    package_logger = logging.getLogger("push_automerge")
    for existing in list(package_logger.handlers):
        if getattr(existing, "_push_automerge_handler", False):
            package_logger.removeHandler(existing)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(GithubActionsFormatter("%(message)s"))
    handler._push_automerge_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return handler
