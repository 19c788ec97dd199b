"""Tests for key=value output and log formatting."""

from __future__ import annotations

import io
import logging

import pytest

from push_automerge.output import configure_logging, emit, fail


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, "automerge_branch="),
        ("main", "automerge_branch=main"),
        (("b", "a"), 'automerge_branch=["b", "a"]'),
        ({"z": 1, "a": 2}, 'automerge_branch={"a": 2, "z": 1}'),
    ],
    ids=["none", "string", "tuple", "dict"],
)
def test_emit_formats_values(
    capsys: pytest.CaptureFixture[str], value: object, expected: str
) -> None:
    """Values are rendered as plain text or sorted JSON."""
    emit("automerge_branch", value)
    assert capsys.readouterr().out == f"{expected}\n"


def test_fail_reports_error_and_exits(capsys: pytest.CaptureFixture[str]) -> None:
    """fail writes the error to stderr and exits with status 1."""
    with pytest.raises(SystemExit, match="1"):
        fail("boom")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "automerge_status=error\nautomerge_error=boom\n"


def test_warnings_become_workflow_annotations() -> None:
    """Warnings and errors are prefixed with workflow commands."""
    stream = io.StringIO()
    configure_logging(stream=stream)
    logger = logging.getLogger("push_automerge.test")

    logger.info("plain")
    logger.warning("careful")
    logger.error("broken")

    assert stream.getvalue().splitlines() == [
        "plain",
        "::warning::careful",
        "::error::broken",
    ]


def test_annotation_messages_are_escaped() -> None:
    """Multi-line server text stays inside a single annotation."""
    stream = io.StringIO()
    configure_logging(stream=stream)
    logger = logging.getLogger("push_automerge.test")

    logger.warning("GitHub API error 502: <html>\n<body>50% down</body>")
    logger.error("first\r\n::error::second")
    logger.info("plain\n100%")

    assert stream.getvalue() == (
        "::warning::GitHub API error 502: <html>%0A<body>50%25 down</body>\n"
        "::error::first%0D%0A::error::second\n"
        "plain\n100%\n"
    )


def test_configure_logging_replaces_handler() -> None:
    """Repeated configuration does not duplicate output."""
    first = io.StringIO()
    second = io.StringIO()
    configure_logging(stream=first)
    configure_logging(stream=second)

    logging.getLogger("push_automerge").info("once")

    assert first.getvalue() == ""
    assert second.getvalue() == "once\n"
