"""Duplicate detection over a registry document's plugin records.

A registry built by the aggregator never contains duplicates, because records
are already collapsed by (author, id). This check guards hand-edited or
externally produced documents, and author spellings that only collide once
normalized (``"Jane Doe"`` and ``"jane-doe"``).
"""

from __future__ import annotations

from plugreg.spec.issues import ErrorKind, ValidationIssue
from plugreg.utils.identity import normalize_author


def identity_key(plugin: dict) -> tuple[str, str]:
    """(normalized author, id) for a plugin record."""
    author = plugin.get("author")
    return (normalize_author(author) if isinstance(author, str) else "", str(plugin.get("id", "")))


def group_duplicates(plugins: list[dict]) -> dict[tuple[str, str], list[dict]]:
    """Map each (author, id) appearing more than once to its records, in order."""
    groups: dict[tuple[str, str], list[dict]] = {}
    for plugin in plugins:
        groups.setdefault(identity_key(plugin), []).append(plugin)
    return {key: group for key, group in groups.items() if len(group) > 1}


def detect_duplicates(plugins: list[dict]) -> set[tuple[str, str]]:
    """Return the (author, id) keys that appear more than once."""
    return set(group_duplicates(plugins))


def duplicate_issues(plugins: list[dict]) -> list[ValidationIssue]:
    """One DUPLICATE_IDENTITY issue per duplicated key, listing every offender."""
    issues = []
    for (author, plugin_id), group in group_duplicates(plugins).items():
        issues.append(
            ValidationIssue(
                kind=ErrorKind.DUPLICATE_IDENTITY,
                message=f"author '{author}', id '{plugin_id}' appears {len(group)} times",
                path=f"{author}/{plugin_id}",
                details=[
                    f"{p.get('name', '?')} ({p.get('repository', '?')})" for p in group
                ],
            )
        )
    return issues
