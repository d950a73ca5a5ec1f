"""Validator — check a built registry document for correctness.

Runs against registry.json rather than the plugins tree: the registry schema
(which carries the repository URL rule), duplicate detection, the same
author/id/letter identity checks the loader applies, plus ordering and
statistics consistency. Every independent problem is reported.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from plugreg.registry.duplicates import duplicate_issues
from plugreg.registry.errors import RegistryReadError
from plugreg.registry.loader import check_identity
from plugreg.spec.issues import ErrorKind, ValidationIssue
from plugreg.spec.schema_validator import SchemaValidator
from plugreg.utils.semver import version_sort_key


@dataclass
class RegistryCheck:
    """Result of validating a registry document."""

    issues: list[ValidationIssue] = field(default_factory=list)
    plugin_count: int = 0

    @property
    def passed(self) -> bool:
        return not any(i.is_error for i in self.issues)


def validate_registry(document, validator: SchemaValidator | None = None) -> RegistryCheck:
    """Validate a parsed registry document."""
    check = RegistryCheck()
    if not isinstance(document, dict):
        check.issues.append(
            ValidationIssue(ErrorKind.MALFORMED_JSON, "registry must be a JSON object")
        )
        return check

    validator = validator or SchemaValidator.for_registry()
    violations = validator.validate(document)
    if violations:
        check.issues.append(
            ValidationIssue(
                kind=ErrorKind.SCHEMA_VIOLATION,
                message=f"registry schema validation failed ({len(violations)} violation(s))",
                details=violations,
            )
        )

    plugins = document.get("plugins")
    if not isinstance(plugins, list):
        return check

    records = [p for p in plugins if isinstance(p, dict)]
    check.plugin_count = len(plugins)
    check.issues.extend(duplicate_issues(records))

    for record in records:
        issue = _check_record_identity(record)
        if issue is not None:
            check.issues.append(issue)
        issue = _check_record_versions(record)
        if issue is not None:
            check.issues.append(issue)

    ids = [str(p.get("id", "")) for p in records]
    if ids != sorted(ids):
        check.issues.append(
            ValidationIssue(ErrorKind.SCHEMA_VIOLATION, "plugins are not sorted by id")
        )

    stats = document.get("statistics")
    if isinstance(stats, dict):
        check.issues.extend(_check_statistics(stats, records))

    return check


def validate_registry_file(path: str | Path, validator: SchemaValidator | None = None) -> RegistryCheck:
    """Read and validate a registry.json file."""
    path = Path(path)
    if not path.exists():
        raise RegistryReadError(f"Registry not found: {path}")

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        return RegistryCheck(
            issues=[ValidationIssue(ErrorKind.MALFORMED_JSON, f"invalid JSON: {e}", path.name)]
        )
    return validate_registry(document, validator)


def _record_label(record: dict) -> str:
    return str(record.get("path") or record.get("id") or "?")


def _check_record_identity(record: dict) -> ValidationIssue | None:
    path = record.get("path")
    label = _record_label(record)
    segments = path.split("/") if isinstance(path, str) else []
    if len(segments) < 3 or not all(segments[-3:]):
        return ValidationIssue(
            ErrorKind.MALFORMED_PATH,
            f"record path {path!r} is not of the form plugins/letter/author/plugin-id",
            label,
        )
    letter, author, plugin_id = segments[-3:]
    return check_identity(record, letter, author, plugin_id, label)


def _check_record_versions(record: dict) -> ValidationIssue | None:
    versions = record.get("versions")
    latest = record.get("latest_version")
    if not isinstance(versions, list) or not versions or not isinstance(latest, str):
        return None  # Reported by the schema
    if not all(isinstance(v, str) for v in versions):
        return None
    if versions != sorted(versions, key=version_sort_key) or versions[-1] != latest:
        return ValidationIssue(
            ErrorKind.SCHEMA_VIOLATION,
            f"versions {versions} must be ascending and end with latest_version '{latest}'",
            _record_label(record),
        )
    return None


def _check_statistics(stats: dict, records: list[dict]) -> list[ValidationIssue]:
    expected = {
        "total_plugins": len(records),
        "total_versions": sum(
            len(r["versions"]) for r in records if isinstance(r.get("versions"), list)
        ),
        "total_authors": len({_author_dir(r) for r in records}),
    }
    issues = []
    for name, value in expected.items():
        if name in stats and stats[name] != value:
            issues.append(
                ValidationIssue(
                    ErrorKind.SCHEMA_VIOLATION,
                    f"statistics.{name} is {stats[name]}, expected {value}",
                )
            )
    return issues


def _author_dir(record: dict) -> str:
    path = record.get("path")
    if isinstance(path, str) and path.count("/") >= 2:
        return path.split("/")[-2]
    return ""
