"""Tests for collapsing manifests into the registry document."""

import json
from datetime import datetime, timezone

from plugreg.registry.aggregator import (
    aggregate,
    collapse_versions,
    format_timestamp,
    serialize_registry,
)
from plugreg.registry.duplicates import detect_duplicates
from plugreg.registry.models import LoadedManifest
from plugreg.utils.identity import PathIdentity, bucket_letter, normalize_author

T1 = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
T2 = datetime(2026, 2, 1, 0, 0, 0, tzinfo=timezone.utc)


def _entry(plugin_id: str = "time-export", version: str = "1.0.0", author: str = "Jane Doe", **overrides):
    slug = normalize_author(author)
    manifest = {
        "id": plugin_id,
        "name": plugin_id.replace("-", " ").title(),
        "author": author,
        "repository": f"https://github.com/{slug}/{plugin_id}",
        "latest_version": version,
        "description": f"The {plugin_id} plugin at version {version}.",
        "category": "export",
        "tags": ["export"],
        "license": "MIT",
        "min_core_version": "0.3.0",
        "max_core_version": "1.0.0",
        "api_version": "1.0",
    }
    manifest.update(overrides)
    identity = PathIdentity(bucket_letter(slug), slug, plugin_id, version)
    return LoadedManifest(identity=identity, manifest=manifest)


def test_versions_collapse_to_latest():
    doc = aggregate([_entry(version="1.0.0"), _entry(version="2.0.0")], now=T1)
    assert len(doc.plugins) == 1
    record = doc.plugins[0]
    assert record["latest_version"] == "2.0.0"
    assert record["versions"] == ["1.0.0", "2.0.0"]
    assert record["description"] == "The time-export plugin at version 2.0.0."
    assert record["path"] == "plugins/j/jane-doe/time-export"


def test_winner_independent_of_traversal_order():
    entries = [_entry(version="1.10.0"), _entry(version="1.2.0"), _entry(version="1.9.3")]
    doc = aggregate(entries, now=T1)
    assert doc.plugins[0]["latest_version"] == "1.10.0"
    assert doc.plugins[0]["versions"] == ["1.2.0", "1.9.3", "1.10.0"]
    assert aggregate(list(reversed(entries)), now=T1).to_dict() == doc.to_dict()


def test_release_beats_prerelease_of_same_version():
    entries = [_entry(version="2.0.0"), _entry(version="2.0.0-rc.1")]
    record = aggregate(entries, now=T1).plugins[0]
    assert record["latest_version"] == "2.0.0"
    assert record["versions"] == ["2.0.0-rc.1", "2.0.0"]

    record = aggregate(list(reversed(entries)), now=T1).plugins[0]
    assert record["latest_version"] == "2.0.0"


def test_latest_version_taken_from_directory():
    entry = _entry(version="1.5.0", latest_version="1.4.0")
    record = aggregate([entry], now=T1).plugins[0]
    assert record["latest_version"] == "1.5.0"


def test_records_sorted_by_id():
    doc = aggregate(
        [_entry("zeta"), _entry("alpha", author="Acme"), _entry("mid", author="Bob")],
        now=T1,
    )
    assert [p["id"] for p in doc.plugins] == ["alpha", "mid", "zeta"]


def test_same_id_different_authors_are_separate_plugins():
    doc = aggregate([_entry("sync"), _entry("sync", author="Acme")], now=T1)
    assert len(doc.plugins) == 2
    assert {p["path"] for p in doc.plugins} == {"plugins/j/jane-doe/sync", "plugins/a/acme/sync"}


def test_record_field_order_and_defaults():
    entry = _entry()
    del entry.manifest["category"]
    entry.manifest["$schema"] = "https://example.com/manifest.schema.json"
    record = aggregate([entry], now=T1).plugins[0]
    assert "$schema" not in record
    assert record["category"] == "other"
    keys = list(record)
    assert keys[:3] == ["id", "name", "author"]
    assert keys[-2:] == ["versions", "path"]


def test_statistics():
    doc = aggregate(
        [
            _entry("a", "1.0.0"),
            _entry("a", "1.1.0"),
            _entry("b", "0.1.0"),
            _entry("c", "3.0.0", author="Acme"),
        ],
        now=T1,
    )
    assert doc.statistics.to_dict() == {"total_plugins": 3, "total_versions": 4, "total_authors": 2}


def test_duplicate_version_strings_counted_once():
    doc = aggregate([_entry(version="1.0.0"), _entry(version="1.0.0")], now=T1)
    assert doc.plugins[0]["versions"] == ["1.0.0"]


def test_document_shape():
    data = aggregate([_entry()], now=T1, schema_ref="./registry.schema.json").to_dict()
    assert list(data) == ["$schema", "version", "last_updated", "plugins", "statistics"]
    assert data["version"] == "1.0.0"
    assert data["last_updated"] == "2026-01-02T03:04:05.678Z"


def test_timestamp_preserved_when_unchanged():
    first = aggregate([_entry()], now=T1).to_dict()
    second = aggregate([_entry()], previous=first, now=T2)
    assert second.last_updated == first["last_updated"]
    assert serialize_registry(second) == serialize_registry(first)


def test_timestamp_refreshed_when_changed():
    first = aggregate([_entry()], now=T1).to_dict()
    second = aggregate([_entry(), _entry(version="1.1.0")], previous=first, now=T2)
    assert second.last_updated == format_timestamp(T2)


def test_timestamp_refreshed_when_previous_unusable():
    plugins = aggregate([_entry()], now=T1).plugins
    for previous in ({}, {"plugins": plugins}, {"last_updated": "x", "plugins": "nope"}, []):
        doc = aggregate([_entry()], previous=previous, now=T2)
        assert doc.last_updated == format_timestamp(T2)


def test_empty_input():
    doc = aggregate([], now=T1)
    assert doc.plugins == []
    assert doc.statistics.total_plugins == 0


def test_serialize_registry_is_stable_json():
    text = serialize_registry(aggregate([_entry()], now=T1))
    assert text.endswith("}\n")
    assert json.loads(text)["plugins"][0]["id"] == "time-export"


def test_aggregated_output_has_no_duplicates():
    entries = [_entry("a", v) for v in ("1.0.0", "1.1.0")] + [_entry("a", "1.0.0", author="Acme")]
    assert detect_duplicates(aggregate(entries, now=T1).plugins) == set()


def test_collapse_versions_records():
    records = collapse_versions([_entry(version="1.0.0"), _entry(version="0.9.0")])
    assert len(records) == 1
    assert records[0].author_slug == "jane-doe"
    assert records[0].letter == "j"
    assert records[0].latest_version == "1.0.0"
