"""Scaffolding — create a new manifest at its canonical location.

Writes ``{plugins_dir}/{letter}/{author}/{id}/{version}/plugin.json`` from a
draft. The draft is checked against the manifest schema first so a freshly
created manifest always passes ``plugreg validate``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from plugreg.registry.errors import ScaffoldError
from plugreg.spec.schema import CATEGORIES, DEFAULT_CATEGORY, MANIFEST_SCHEMA
from plugreg.spec.schema_validator import SchemaValidator
from plugreg.utils.file_scanner import DEFAULT_MANIFEST_FILENAME
from plugreg.utils.identity import bucket_letter, normalize_author


@dataclass
class ManifestDraft:
    """Answers collected for a new plugin manifest."""

    id: str
    name: str
    author: str
    repository: str
    description: str
    latest_version: str = "1.0.0"
    category: str = DEFAULT_CATEGORY
    tags: list[str] = field(default_factory=list)
    license: str = "MIT"
    min_core_version: str = "0.3.0"
    max_core_version: str = "1.0.0"
    api_version: str = "1.0"
    homepage: str = ""
    icon: str = ""


def build_manifest(draft: ManifestDraft) -> dict:
    """Turn a draft into manifest JSON, applying the scaffolding defaults."""
    repository = draft.repository.strip().rstrip("/")
    manifest = {
        "$schema": MANIFEST_SCHEMA["$id"],
        "id": draft.id,
        "name": draft.name,
        "author": draft.author,
        "repository": repository,
        "latest_version": draft.latest_version,
        "description": draft.description,
        "category": draft.category if draft.category in CATEGORIES else DEFAULT_CATEGORY,
        "verified": False,
        "downloads": 0,
        "tags": [t.strip() for t in draft.tags if t.strip()] or [draft.id],
        "license": draft.license or "MIT",
        "min_core_version": draft.min_core_version,
        "max_core_version": draft.max_core_version,
        "api_version": draft.api_version,
    }
    if draft.homepage and draft.homepage.rstrip("/") != repository:
        manifest["homepage"] = draft.homepage
    if draft.icon:
        manifest["icon"] = draft.icon
    return manifest


def manifest_location(
    plugins_dir: str | Path,
    draft: ManifestDraft,
    manifest_filename: str = DEFAULT_MANIFEST_FILENAME,
) -> Path:
    slug = normalize_author(draft.author)
    return (
        Path(plugins_dir)
        / bucket_letter(slug)
        / slug
        / draft.id
        / draft.latest_version
        / manifest_filename
    )


def scaffold_manifest(
    plugins_dir: str | Path,
    draft: ManifestDraft,
    manifest_filename: str = DEFAULT_MANIFEST_FILENAME,
    validator: SchemaValidator | None = None,
) -> Path:
    """Write a new manifest and return its path. Never overwrites."""
    if not normalize_author(draft.author):
        raise ScaffoldError(
            f"Author '{draft.author}' has no ASCII letters or digits to build a directory name from"
        )

    manifest = build_manifest(draft)
    violations = (validator or SchemaValidator.for_manifest()).validate(manifest)
    if violations:
        raise ScaffoldError("Manifest does not satisfy the schema", violations)

    path = manifest_location(plugins_dir, draft, manifest_filename)
    if path.exists():
        raise ScaffoldError(f"Plugin version already exists at {path}")

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(json.dumps(manifest, indent=2, ensure_ascii=False) + "\n")
    return path
