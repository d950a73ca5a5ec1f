"""Manifest loader — walk the plugins tree and validate every manifest.

Each manifest goes through a fixed sequence of checks and stops at the first
one it fails. A failing manifest never stops the others from being checked:
all failures are collected and reported together.

Checks, in order:
1. the directory path follows ``letter/author/plugin-id/version``
2. the file is a JSON object
3. ``author`` is present and not blank
4. the normalized author equals the author directory
5. ``id`` equals the plugin-id directory
6. the author's bucket letter equals the letter directory
7. the manifest passes the structural schema
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from plugreg.registry.models import EntryResult, LoadedManifest, LoadResult
from plugreg.spec.issues import ErrorKind, Severity, ValidationIssue
from plugreg.spec.schema_validator import SchemaValidator
from plugreg.utils.file_scanner import (
    DEFAULT_MANIFEST_FILENAME,
    ManifestLocation,
    ManifestWalker,
)
from plugreg.utils.identity import PathRejection, bucket_letter, classify_path, normalize_author

logger = logging.getLogger(__name__)


def load_manifests(
    plugins_dir: str | Path,
    validator: SchemaValidator | None = None,
    manifest_filename: str = DEFAULT_MANIFEST_FILENAME,
) -> LoadResult:
    """Validate every manifest below ``plugins_dir``. Never writes."""
    validator = validator or SchemaValidator.for_manifest()
    result = LoadResult()

    for location in ManifestWalker(plugins_dir, manifest_filename):
        entry = validate_location(location, validator)
        if entry.ok:
            logger.debug("Loaded %s", entry.relative_path)
        else:
            logger.debug("Rejected %s: %s", entry.relative_path, entry.errors[0].message)
        result.results.append(entry)

    logger.info(
        "Validated %d manifest(s) under %s: %d passed, %d failed",
        len(result.results),
        plugins_dir,
        result.passed_count,
        result.failed_count,
    )
    return result


def validate_location(location: ManifestLocation, validator: SchemaValidator) -> EntryResult:
    """Read one manifest file and validate it."""
    display_path = f"{location.relative_path}/{location.file_path.name}"
    try:
        raw = location.file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return EntryResult(
            relative_path=display_path,
            issues=[_issue(ErrorKind.MALFORMED_JSON, f"could not read manifest: {e}", display_path)],
        )

    result = validate_entry(location.segments, raw, validator, display_path=display_path)
    if result.entry is not None:
        result.entry.file_path = location.file_path
    return result


def validate_file(
    file_path: str | Path,
    plugins_dir: str | Path,
    validator: SchemaValidator | None = None,
) -> EntryResult:
    """Validate a single manifest file located somewhere below ``plugins_dir``."""
    path = Path(file_path).resolve()
    root = Path(plugins_dir).resolve()
    try:
        segments = path.parent.relative_to(root).parts
    except ValueError:
        return EntryResult(
            relative_path=str(file_path),
            issues=[
                _issue(
                    ErrorKind.MALFORMED_PATH,
                    f"manifest is not inside the plugins directory {plugins_dir}",
                    str(file_path),
                )
            ],
        )
    location = ManifestLocation(file_path=path, segments=tuple(segments))
    return validate_location(location, validator or SchemaValidator.for_manifest())


def validate_entry(
    segments: list[str] | tuple[str, ...],
    raw: str,
    validator: SchemaValidator,
    display_path: str = "",
) -> EntryResult:
    """Run the check sequence over one manifest's path segments and raw text."""
    display_path = display_path or "/".join(segments)
    result = EntryResult(relative_path=display_path)

    identity = classify_path(segments)
    if isinstance(identity, PathRejection):
        result.issues.append(_issue(ErrorKind.MALFORMED_PATH, identity.reason, display_path))
        return result

    try:
        manifest = json.loads(raw)
    except json.JSONDecodeError as e:
        result.issues.append(_issue(ErrorKind.MALFORMED_JSON, f"invalid JSON: {e}", display_path))
        return result
    if not isinstance(manifest, dict):
        result.issues.append(
            _issue(ErrorKind.MALFORMED_JSON, "manifest must be a JSON object", display_path)
        )
        return result

    mismatch = check_identity(
        manifest, identity.letter, identity.author, identity.plugin_id, display_path
    )
    if mismatch is not None:
        result.issues.append(mismatch)
        return result

    violations = validator.validate(manifest)
    if violations:
        result.issues.append(
            ValidationIssue(
                kind=ErrorKind.SCHEMA_VIOLATION,
                message=f"schema validation failed ({len(violations)} violation(s))",
                path=display_path,
                details=violations,
            )
        )
        return result

    declared = manifest.get("latest_version")
    if declared != identity.version:
        result.issues.append(
            _issue(
                ErrorKind.IDENTITY_MISMATCH,
                f"latest_version '{declared}' differs from version directory "
                f"'{identity.version}'; the directory name is used",
                display_path,
                severity=Severity.WARNING,
            )
        )

    result.entry = LoadedManifest(identity=identity, manifest=manifest, relative_path=display_path)
    return result


def check_identity(
    manifest: dict,
    letter: str,
    author_dir: str,
    plugin_id_dir: str,
    path: str = "",
) -> ValidationIssue | None:
    """Cross-check a manifest's author and id against its directory segments.

    Shared by the loader (directory segments) and the registry validator
    (segments of a record's ``path``). Returns the first mismatch found.
    """
    author = manifest.get("author")
    if not isinstance(author, str) or not author.strip():
        return _issue(ErrorKind.MISSING_REQUIRED_FIELD, "missing required 'author' field", path)

    slug = normalize_author(author)
    if not slug:
        return _issue(
            ErrorKind.IDENTITY_MISMATCH,
            f"author '{author}' normalizes to an empty directory name; "
            "use at least one ASCII letter or digit",
            path,
        )
    if slug != author_dir:
        return _issue(
            ErrorKind.IDENTITY_MISMATCH,
            f"author '{author}' (normalized: '{slug}') doesn't match "
            f"directory author '{author_dir}'",
            path,
        )

    if "id" not in manifest:
        return _issue(ErrorKind.MISSING_REQUIRED_FIELD, "missing required 'id' field", path)
    if manifest["id"] != plugin_id_dir:
        return _issue(
            ErrorKind.IDENTITY_MISMATCH,
            f"id '{manifest['id']}' doesn't match directory name '{plugin_id_dir}'",
            path,
        )

    expected_letter = bucket_letter(slug)
    if letter != expected_letter:
        return _issue(
            ErrorKind.IDENTITY_MISMATCH,
            f"letter directory '{letter}' doesn't match author initial '{expected_letter}'",
            path,
        )

    return None


def _issue(
    kind: ErrorKind, message: str, path: str, severity: Severity = Severity.ERROR
) -> ValidationIssue:
    return ValidationIssue(kind=kind, message=message, path=path, severity=severity)
