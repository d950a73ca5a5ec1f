"""Identity resolver — author slugs and the plugin directory convention.

Every manifest lives at ``{letter}/{author}/{plugin-id}/{version}/plugin.json``
relative to the plugins root. The helpers here derive those segments from a
free-text author name and check a candidate path against the convention.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Bucket used when an author name normalizes to nothing.
FALLBACK_LETTER = "other"

PATH_DEPTH = 4

VERSION_SEGMENT_RE = re.compile(r"^\d+\.\d+\.\d+(-[a-z0-9.]+)?$")

_WHITESPACE_RE = re.compile(r"\s+")
_INVALID_SLUG_CHARS_RE = re.compile(r"[^a-z0-9_-]")


@dataclass(frozen=True)
class PathIdentity:
    """The four directory segments that locate one manifest version."""

    letter: str
    author: str
    plugin_id: str
    version: str

    @property
    def key(self) -> tuple[str, str]:
        """(author, id) — the identity shared by every version of a plugin."""
        return (self.author, self.plugin_id)

    @property
    def relative_path(self) -> str:
        return f"{self.letter}/{self.author}/{self.plugin_id}/{self.version}"


@dataclass(frozen=True)
class PathRejection:
    """A path that does not follow the directory convention."""

    reason: str


def normalize_author(raw: str) -> str:
    """Turn a free-text author name into its directory slug.

    Lowercases, collapses whitespace runs to a single hyphen and strips every
    character outside ``[a-z0-9_-]``. The result may be empty.
    """
    slug = _WHITESPACE_RE.sub("-", raw.lower())
    return _INVALID_SLUG_CHARS_RE.sub("", slug)


def bucket_letter(slug: str) -> str:
    """Return the letter directory for an author slug."""
    return slug[0] if slug else FALLBACK_LETTER


def classify_path(segments: list[str] | tuple[str, ...]) -> PathIdentity | PathRejection:
    """Check path segments (relative to the plugins root) against the convention."""
    if len(segments) != PATH_DEPTH:
        return PathRejection(
            reason=(
                f"expected {PATH_DEPTH} directory levels "
                f"(letter/author/plugin-id/version), got {len(segments)}"
            )
        )

    letter, author, plugin_id, version = segments
    if not VERSION_SEGMENT_RE.fullmatch(version):
        return PathRejection(
            reason=f"version directory '{version}' is not a semantic version (e.g. 1.2.0)"
        )

    return PathIdentity(letter=letter, author=author, plugin_id=plugin_id, version=version)


def canonical_path(letter: str, author: str, plugin_id: str, prefix: str = "plugins") -> str:
    """Canonical registry path for a plugin (no version suffix)."""
    return "/".join(part for part in (prefix, letter, author, plugin_id) if part)
