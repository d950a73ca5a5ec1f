"""Registry aggregator — collapse loaded manifests into the registry document.

Every version directory of a plugin becomes part of one record: the record
carries the fields of the highest version, the full ascending list of
versions and the canonical ``plugins/{letter}/{author}/{id}`` path.

Output is deterministic. Records are sorted by id and the ``last_updated``
timestamp is carried over from the previous document whenever the plugin
list serializes to the same bytes, so rebuilding an unchanged tree leaves
registry.json untouched.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Iterable

from plugreg.registry.models import (
    DEFAULT_SCHEMA_REF,
    LoadedManifest,
    PluginRecord,
    RegistryDocument,
    RegistryStatistics,
)
from plugreg.utils.identity import canonical_path
from plugreg.utils.semver import version_sort_key

logger = logging.getLogger(__name__)

PATH_PREFIX = "plugins"


def aggregate(
    entries: Iterable[LoadedManifest],
    previous: dict | None = None,
    now: datetime | None = None,
    schema_ref: str = DEFAULT_SCHEMA_REF,
) -> RegistryDocument:
    """Build the registry document from validated manifests.

    Args:
        entries: Manifests that passed validation, in traversal order.
        previous: The previously written registry document, if any.
        now: Timestamp to stamp when the plugin list changed (defaults to now).
        schema_ref: Value of the document's ``$schema`` key.
    """
    records = collapse_versions(entries)
    plugins = [record.to_dict() for record in records]

    last_updated = _reuse_timestamp(previous, plugins)
    if last_updated is None:
        last_updated = format_timestamp(now or datetime.now(timezone.utc))
        logger.debug("Plugin list changed; stamping %s", last_updated)
    else:
        logger.debug("Plugin list unchanged; keeping last_updated %s", last_updated)

    return RegistryDocument(
        last_updated=last_updated,
        plugins=plugins,
        statistics=compute_statistics(records),
        schema_ref=schema_ref,
    )


def collapse_versions(entries: Iterable[LoadedManifest]) -> list[PluginRecord]:
    """Group manifests by (author, id) and keep the highest version of each."""
    groups: dict[tuple[str, str], list[LoadedManifest]] = {}
    for entry in entries:
        groups.setdefault(entry.key, []).append(entry)

    records = []
    for (author, plugin_id), group in groups.items():
        winner = group[0]
        for candidate in group[1:]:
            # Strictly greater only: equal keys keep the earlier entry.
            if version_sort_key(candidate.version) > version_sort_key(winner.version):
                winner = candidate

        versions = sorted({e.version for e in group}, key=version_sort_key)
        letter = winner.identity.letter
        records.append(
            PluginRecord(
                author_slug=author,
                letter=letter,
                plugin_id=plugin_id,
                latest_version=winner.version,
                manifest=winner.manifest,
                versions=versions,
                path=canonical_path(letter, author, plugin_id, prefix=PATH_PREFIX),
            )
        )

    records.sort(key=lambda r: r.plugin_id)
    return records


def compute_statistics(records: list[PluginRecord]) -> RegistryStatistics:
    return RegistryStatistics(
        total_plugins=len(records),
        total_versions=sum(len(r.versions) for r in records),
        total_authors=len({r.author_slug for r in records}),
    )


def serialize_registry(document: RegistryDocument | dict) -> str:
    """Render a registry document exactly as it is written to disk."""
    data = document.to_dict() if isinstance(document, RegistryDocument) else document
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def plugins_fingerprint(plugins: list) -> str:
    """Serialized form of a plugin list used by the staleness check."""
    return json.dumps(plugins, ensure_ascii=False, separators=(",", ":"))


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _reuse_timestamp(previous: dict | None, plugins: list[dict]) -> str | None:
    if not isinstance(previous, dict):
        return None
    last_updated = previous.get("last_updated")
    if not last_updated or not isinstance(previous.get("plugins"), list):
        return None
    if plugins_fingerprint(previous["plugins"]) != plugins_fingerprint(plugins):
        return None
    return last_updated
