"""Title-based merge policy for version bump pull requests.

Dependabot titles its pull requests ``Bump <package> from <old> to <new>``,
optionally behind a conventional-commit prefix such as ``chore(deps): ``. A
preset restricts which semantic-version levels may be merged automatically:

- no preset: every pull request is allowed;
- ``DEPENDABOT_MINOR``: patch and minor bumps;
- ``DEPENDABOT_PATCH``: patch bumps only.

Titles that do not describe a version bump are allowed. Versions that cannot
be parsed are not allowed under a preset.
"""

from __future__ import annotations

import dataclasses
import enum
import re

from packaging.version import InvalidVersion, Version

__all__ = ["BumpLevel", "Preset", "VersionBump", "parse_version_bump", "should_merge"]

BUMP_TITLE_PATTERN = re.compile(
    r"^(?:[\w-]+(?:\([^)]*\))?!?:\s*)?"
    r"bump (?P<package>\S+) from (?P<old>\S+) to (?P<new>\S+)",
    re.IGNORECASE,
)


class Preset(enum.StrEnum):
    """Named version bump policies."""

    DEPENDABOT_MINOR = "DEPENDABOT_MINOR"
    DEPENDABOT_PATCH = "DEPENDABOT_PATCH"


class BumpLevel(enum.IntEnum):
    """Semantic-version component changed by a bump."""

    PATCH = 0
    MINOR = 1
    MAJOR = 2


_ALLOWED_LEVEL = {
    Preset.DEPENDABOT_MINOR: BumpLevel.MINOR,
    Preset.DEPENDABOT_PATCH: BumpLevel.PATCH,
}


@dataclasses.dataclass(frozen=True, slots=True)
class VersionBump:
    """Package and versions named by a bump title."""

    package: str
    old: str
    new: str


def parse_version_bump(title: str) -> VersionBump | None:
    """Return the bump described by ``title``, or None for other titles."""
    match = BUMP_TITLE_PATTERN.match(title.strip())
    if match is None:
        return None
    return VersionBump(
        package=match.group("package"),
        old=match.group("old"),
        new=match.group("new"),
    )


def _bump_level(old: Version, new: Version) -> BumpLevel:
    if new <= old:
        return BumpLevel.PATCH
    if new.major != old.major:
        return BumpLevel.MAJOR
    if new.minor != old.minor:
        return BumpLevel.MINOR
    return BumpLevel.PATCH


def should_merge(title: str, preset: Preset | None = None) -> bool:
    """Return True when ``preset`` allows merging a pull request titled ``title``."""
    if preset is None:
        return True
    bump = parse_version_bump(title)
    if bump is None:
        return True
    try:
        level = _bump_level(Version(bump.old), Version(bump.new))
    except InvalidVersion:
        return False
    return level <= _ALLOWED_LEVEL[preset]
