"""Configuration for the push auto-merge step.

GitHub Actions forwards ``with:`` inputs as ``INPUT_<NAME>`` environment
variables, keeping any dashes from the input name. :func:`normalize_input_env`
rewrites those to underscore keys before the CLI reads them.
"""

from __future__ import annotations

import dataclasses
import math
import os

from .policy import Preset

__all__ = [
    "DEFAULT_GITHUB_LOGIN",
    "MERGE_METHODS",
    "AutomergeConfig",
    "build_config",
    "normalize_input_env",
    "normalize_merge_method",
    "normalize_preset",
]

DEFAULT_GITHUB_LOGIN = "dependabot[bot]"

MERGE_METHODS = {
    "merge": "MERGE",
    "rebase": "REBASE",
    "squash": "SQUASH",
}


@dataclasses.dataclass(frozen=True, slots=True)
class AutomergeConfig:
    """Validated configuration for one run.

    Attributes
    ----------
    github_login : str
        Login of the automation account whose pushes are acted on.
    maximum_retries : int
        Maximum number of merge mutations issued.
    merge_method : str
        The normalised merge method (``SQUASH``, ``MERGE``, or ``REBASE``).
    preset : Preset or None
        Title policy, or None to allow every pull request.
    retry_delay : float
        Seconds to wait between a failed merge and the refresh before retrying.
    """

    github_login: str = DEFAULT_GITHUB_LOGIN
    maximum_retries: int = 3
    merge_method: str = "SQUASH"
    preset: Preset | None = None
    retry_delay: float = 0.0


def _is_dashed_input_key(key: str, prefix: str, alt_prefix: str) -> bool:
    """Return True if key is a dashed variant of an input key."""
    return key.startswith((prefix, alt_prefix)) and "-" in key


def normalize_input_env(prefix: str = "INPUT_", *, prefer_dashed: bool = False) -> None:
    """Rewrite dashed ``INPUT`` variables (``INPUT_MERGE-METHOD``) to underscores.

    Existing underscore keys win unless ``prefer_dashed`` is set. Dashed keys
    are removed from ``os.environ`` either way.
    """
    alt_prefix = prefix.replace("_", "-")
    updates: dict[str, str] = {}
    removals: list[str] = []
    for key, value in os.environ.items():
        if not _is_dashed_input_key(key, prefix, alt_prefix):
            continue
        normalized = key.replace("-", "_")
        if prefer_dashed or normalized not in os.environ:
            updates[normalized] = value
        removals.append(key)

    for key, value in updates.items():
        os.environ[key] = value
    for key in removals:
        os.environ.pop(key, None)


def normalize_merge_method(merge_method: str) -> str:
    """Validate and normalise a merge method to its GraphQL enum value."""
    normalized = merge_method.strip().lower()
    if normalized not in MERGE_METHODS:
        allowed = ", ".join(sorted(MERGE_METHODS))
        msg = f"Invalid merge_method '{merge_method}'. Allowed: {allowed}."
        raise ValueError(msg)
    return MERGE_METHODS[normalized]


def normalize_preset(preset: str | None) -> Preset | None:
    """Return the named preset, or None when ``preset`` is empty."""
    if preset is None or not (name := preset.strip()):
        return None
    try:
        return Preset(name.upper())
    except ValueError:
        allowed = ", ".join(sorted(Preset))
        msg = f"Invalid preset '{preset}'. Allowed: {allowed}."
        raise ValueError(msg) from None


def build_config(
    *,
    github_login: str,
    maximum_retries: int,
    merge_method: str,
    preset: str | None,
    retry_delay: float,
) -> AutomergeConfig:
    """Validate raw inputs and return an :class:`AutomergeConfig`.

    Raises
    ------
    ValueError
        An input is empty, out of range, or not a recognised value.
    """
    login = github_login.strip()
    if not login:
        msg = "github_login must not be empty."
        raise ValueError(msg)
    if maximum_retries < 1:
        msg = f"maximum_retries must be a positive integer, got {maximum_retries}."
        raise ValueError(msg)
    if not math.isfinite(retry_delay) or retry_delay < 0:
        msg = f"retry_delay must be a non-negative number, got {retry_delay}."
        raise ValueError(msg)
    return AutomergeConfig(
        github_login=login,
        maximum_retries=maximum_retries,
        merge_method=normalize_merge_method(merge_method),
        preset=normalize_preset(preset),
        retry_delay=retry_delay,
    )
