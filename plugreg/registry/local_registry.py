"""Local file-based registry implementation.

Builds registry.json from the plugins tree and answers read-only queries
against the built document.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from plugreg.config import RegistryConfig
from plugreg.registry.aggregator import aggregate, serialize_registry
from plugreg.registry.errors import RegistryBuildError, RegistryReadError, RegistryWriteError
from plugreg.registry.loader import load_manifests
from plugreg.registry.models import BuildReport, LoadResult, SearchQuery, SearchResult
from plugreg.spec.schema_validator import SchemaValidator
from plugreg.utils.identity import normalize_author

logger = logging.getLogger(__name__)


class LocalRegistry:
    """File-based registry over a plugins directory and its registry.json."""

    def __init__(self, config: RegistryConfig | None = None, validator: SchemaValidator | None = None):
        self.config = config or RegistryConfig()
        self.plugins_dir = Path(self.config.plugins_dir)
        self.registry_path = Path(self.config.registry_path)
        self.validator = validator or SchemaValidator.for_manifest()

    def load_tree(self) -> LoadResult:
        """Validate every manifest in the plugins tree without writing anything."""
        return load_manifests(self.plugins_dir, self.validator, self.config.manifest_filename)

    def build(self, refresh_timestamp: bool = False, now: datetime | None = None) -> BuildReport:
        """Rebuild registry.json from the plugins tree.

        Raises RegistryBuildError (with every issue) when any manifest is
        invalid, and RegistryWriteError when the output can't be written.
        """
        if not self.plugins_dir.is_dir():
            logger.warning("Plugins directory %s not found; building an empty registry", self.plugins_dir)
            load = LoadResult()
        else:
            load = self.load_tree()
            if not load.passed:
                raise RegistryBuildError(load.errors)

        previous = None if refresh_timestamp else self.load()
        document = aggregate(load.valid, previous=previous, now=now, schema_ref=self.config.schema_ref)
        preserved = previous is not None and previous.get("last_updated") == document.last_updated

        self._save(serialize_registry(document))
        logger.info("Wrote %d plugin(s) to %s", len(document.plugins), self.registry_path)

        return BuildReport(
            document=document,
            registry_path=self.registry_path,
            load=load,
            timestamp_preserved=preserved,
        )

    def load(self) -> dict | None:
        """Return the current registry document, or None if absent or unreadable."""
        if not self.registry_path.exists():
            return None
        try:
            with open(self.registry_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug("Ignoring unreadable registry %s: %s", self.registry_path, e)
            return None
        return data if isinstance(data, dict) else None

    def read(self) -> dict:
        """Return the current registry document or raise RegistryReadError."""
        if not self.registry_path.exists():
            raise RegistryReadError(
                f"Registry not found: {self.registry_path} (run 'plugreg build' first)"
            )
        try:
            with open(self.registry_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise RegistryReadError(f"Invalid JSON in {self.registry_path}: {e}") from e
        if not isinstance(data, dict):
            raise RegistryReadError(f"{self.registry_path}: expected a JSON object")
        return data

    def list_all(self) -> list[dict]:
        """List all plugin records in the registry."""
        plugins = self.read().get("plugins") or []
        return [p for p in plugins if isinstance(p, dict)]

    def get(self, plugin_id: str, author: str = "") -> dict | None:
        """Get a plugin record by id, optionally narrowed to one author."""
        slug = normalize_author(author) if author else ""
        for plugin in self.list_all():
            if plugin.get("id") != plugin_id:
                continue
            if slug and normalize_author(str(plugin.get("author", ""))) != slug:
                continue
            return plugin
        return None

    def search(self, query: SearchQuery) -> SearchResult:
        """Search the registry."""
        results = []
        text = query.text.lower()

        for plugin in self.list_all():
            tags = [t for t in plugin.get("tags", []) if isinstance(t, str)]

            if text and not _matches_text(plugin, tags, text):
                continue

            if query.tags and not any(t in tags for t in query.tags):
                continue

            if query.category and plugin.get("category") != query.category:
                continue

            results.append(plugin)

        return SearchResult(entries=results, total_count=len(results), query=query)

    def _save(self, content: str):
        try:
            self.registry_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.registry_path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise RegistryWriteError(f"Could not write {self.registry_path}: {e}") from e


def _matches_text(plugin: dict, tags: list[str], text: str) -> bool:
    haystack = [str(plugin.get(key, "")) for key in ("id", "name", "description")] + tags
    return any(text in value.lower() for value in haystack)
