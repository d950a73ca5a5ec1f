"""Registry data models — loaded manifests, plugin records, documents and search."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from plugreg.spec import REGISTRY_FORMAT_VERSION
from plugreg.spec.issues import ValidationIssue
from plugreg.spec.schema import DEFAULT_CATEGORY, MANIFEST_FIELD_ORDER
from plugreg.utils.identity import PathIdentity

DEFAULT_SCHEMA_REF = "./registry.schema.json"


@dataclass
class LoadedManifest:
    """A manifest that passed every check, with its resolved identity."""

    identity: PathIdentity
    manifest: dict
    relative_path: str = ""
    file_path: Path | None = None

    @property
    def key(self) -> tuple[str, str]:
        return self.identity.key

    @property
    def version(self) -> str:
        return self.identity.version


@dataclass
class EntryResult:
    """Outcome of validating one manifest file.

    ``entry`` is set when the manifest is usable; ``issues`` may still hold
    warnings in that case.
    """

    relative_path: str
    entry: LoadedManifest | None = None
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.entry is not None and not self.errors

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.is_error]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if not i.is_error]


@dataclass
class LoadResult:
    """Every manifest found under a plugins root, split by outcome."""

    results: list[EntryResult] = field(default_factory=list)

    @property
    def valid(self) -> list[LoadedManifest]:
        return [r.entry for r in self.results if r.ok and r.entry is not None]

    @property
    def failed(self) -> list[EntryResult]:
        return [r for r in self.results if not r.ok]

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for r in self.results for issue in r.errors]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for r in self.results for issue in r.warnings]

    @property
    def passed_count(self) -> int:
        return len(self.results) - self.failed_count

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def passed(self) -> bool:
        return self.failed_count == 0


@dataclass
class PluginRecord:
    """One (author, id) pair collapsed across all of its version directories."""

    author_slug: str
    letter: str
    plugin_id: str
    latest_version: str
    manifest: dict
    versions: list[str] = field(default_factory=list)
    path: str = ""

    def to_dict(self) -> dict:
        """Serialize in schema field order with ``versions`` and ``path`` last."""
        data: dict = {}
        for name in MANIFEST_FIELD_ORDER:
            if name == "latest_version":
                data[name] = self.latest_version
            elif name == "category":
                data[name] = self.manifest.get("category", DEFAULT_CATEGORY)
            elif name in self.manifest:
                data[name] = self.manifest[name]
        data["versions"] = list(self.versions)
        data["path"] = self.path
        return data


@dataclass
class RegistryStatistics:
    total_plugins: int = 0
    total_versions: int = 0
    total_authors: int = 0

    def to_dict(self) -> dict:
        return {
            "total_plugins": self.total_plugins,
            "total_versions": self.total_versions,
            "total_authors": self.total_authors,
        }


@dataclass
class RegistryDocument:
    """The aggregated registry index written to registry.json."""

    last_updated: str
    plugins: list[dict] = field(default_factory=list)
    statistics: RegistryStatistics = field(default_factory=RegistryStatistics)
    schema_ref: str = DEFAULT_SCHEMA_REF
    version: str = REGISTRY_FORMAT_VERSION

    def to_dict(self) -> dict:
        return {
            "$schema": self.schema_ref,
            "version": self.version,
            "last_updated": self.last_updated,
            "plugins": self.plugins,
            "statistics": self.statistics.to_dict(),
        }


@dataclass
class BuildReport:
    """What a registry build produced."""

    document: RegistryDocument
    registry_path: Path
    load: LoadResult = field(default_factory=LoadResult)
    timestamp_preserved: bool = False

    @property
    def plugin_count(self) -> int:
        return len(self.document.plugins)


@dataclass
class SearchQuery:
    """Query for searching the registry."""

    text: str = ""
    tags: list[str] = field(default_factory=list)
    category: str = ""


@dataclass
class SearchResult:
    """Result of a registry search."""

    entries: list[dict] = field(default_factory=list)
    total_count: int = 0
    query: SearchQuery = field(default_factory=SearchQuery)
