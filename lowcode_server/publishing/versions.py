"""
Semantic version helpers for published resources.
"""

from enum import Enum
from typing import Optional

import semver

INITIAL_VERSION = "0.0.0"


class ReleaseType(str, Enum):
    """Which part of the version a publish bumps."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


def is_valid_version(version: Optional[str]) -> bool:
    """Check whether a string is a valid semantic version."""
    return bool(version) and semver.Version.is_valid(version)


def increment_version(
    current_version: Optional[str], release_type: ReleaseType = ReleaseType.MINOR
) -> str:
    """
    Bump a version. A missing or invalid current version counts as 0.0.0.
    """
    base = current_version if is_valid_version(current_version) else INITIAL_VERSION
    version = semver.Version.parse(base)
    if release_type == ReleaseType.MAJOR:
        return str(version.bump_major())
    if release_type == ReleaseType.PATCH:
        return str(version.bump_patch())
    return str(version.bump_minor())


def is_newer_version(candidate: str, current_version: Optional[str]) -> bool:
    """Check that a candidate version is strictly greater than the current one."""
    if not is_valid_version(current_version):
        return True
    return semver.Version.parse(candidate) > semver.Version.parse(current_version)
