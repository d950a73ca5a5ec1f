"""Semantic version comparison for plugin version directories."""

from __future__ import annotations

import re

_NUMERIC_RE = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_PRERELEASE_RE = re.compile(r"^\d+(?:\.\d+){0,2}-(.+)$")


def parse_numeric(version: str) -> tuple[int, int, int]:
    """Extract ``(major, minor, patch)`` from the start of a version string.

    Missing components are 0 and unparseable input yields ``(0, 0, 0)``.
    """
    match = _NUMERIC_RE.match(version.strip())
    if not match:
        return (0, 0, 0)
    major, minor, patch = match.groups()
    return (int(major), int(minor or 0), int(patch or 0))


def prerelease(version: str) -> str:
    """Return the pre-release suffix of a version (empty for releases)."""
    match = _PRERELEASE_RE.match(version.strip())
    return match.group(1) if match else ""


def compare_semver(a: str, b: str) -> int:
    """Compare two versions numerically; returns -1, 0 or 1.

    Pre-release suffixes are ignored, so ``1.0.0-beta`` equals ``1.0.0``.
    """
    left, right = parse_numeric(a), parse_numeric(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def version_sort_key(version: str) -> tuple:
    """Total ordering key for versions.

    Orders by the numeric triple first. Among equal triples a release sorts
    after its pre-releases, and pre-releases sort lexicographically.
    """
    suffix = prerelease(version)
    return (parse_numeric(version), suffix == "", suffix)
