"""Tests for the manifest/registry schemas and the structural validator."""

import pytest

from plugreg.spec.schema import CATEGORIES, get_manifest_schema, get_registry_schema
from plugreg.spec.schema_validator import SchemaValidator, validate_schema


def _make_manifest(**overrides) -> dict:
    """Build a minimal valid manifest dict."""
    data = {
        "id": "time-export",
        "name": "Time Export",
        "author": "Jane Doe",
        "repository": "https://github.com/jane-doe/time-export",
        "latest_version": "1.2.0",
        "description": "Export tracked time to CSV and JSON files.",
        "category": "export",
        "tags": ["export", "csv"],
        "license": "MIT",
        "min_core_version": "0.3.0",
        "max_core_version": "1.0.0",
        "api_version": "1.0",
    }
    data.update(overrides)
    return data


# --- Schema Tests ---


def test_schema_exists():
    schema = get_manifest_schema()
    assert schema["$schema"] == "https://json-schema.org/draft/2020-12/schema"
    assert "id" in schema["properties"]
    assert schema["properties"]["category"]["enum"] == CATEGORIES


def test_registry_schema_embeds_record_schema():
    schema = get_registry_schema()
    record = schema["properties"]["plugins"]["items"]
    assert "versions" in record["properties"]
    assert "path" in record["properties"]
    assert "$schema" not in record["properties"]


def test_get_schema_returns_copies():
    schema = get_manifest_schema()
    schema["required"].append("bogus")
    assert "bogus" not in get_manifest_schema()["required"]


# --- Validator Tests ---


def test_valid_manifest():
    assert SchemaValidator.for_manifest().validate(_make_manifest()) == []


def test_optional_fields_accepted():
    data = _make_manifest(
        homepage="https://example.com/time-export",
        icon="icon.png",
        verified=False,
        downloads=12,
    )
    data["$schema"] = "https://plugreg.dev/schemas/manifest.schema.json"
    assert SchemaValidator.for_manifest().validate(data) == []


def test_missing_required_field():
    data = _make_manifest()
    del data["license"]
    issues = SchemaValidator.for_manifest().validate(data)
    assert any("license" in i for i in issues)


def test_category_is_optional_but_enumerated():
    data = _make_manifest()
    del data["category"]
    assert SchemaValidator.for_manifest().validate(data) == []

    issues = SchemaValidator.for_manifest().validate(_make_manifest(category="games"))
    assert any("allowed values" in i for i in issues)


@pytest.mark.parametrize("plugin_id", ["Time-Export", "time_export", "", "x" * 51])
def test_invalid_id_pattern(plugin_id):
    issues = SchemaValidator.for_manifest().validate(_make_manifest(id=plugin_id))
    assert any(".id" in i and "pattern" in i for i in issues)


def test_name_length_limit():
    issues = SchemaValidator.for_manifest().validate(_make_manifest(name="n" * 101))
    assert any("too long" in i for i in issues)


def test_description_length_limits():
    validator = SchemaValidator.for_manifest()
    assert any("too short" in i for i in validator.validate(_make_manifest(description="short")))
    assert any("too long" in i for i in validator.validate(_make_manifest(description="d" * 501)))


def test_repository_url_rules():
    validator = SchemaValidator.for_manifest()
    assert validator.validate(_make_manifest(repository="https://github.com/acme/tool")) == []
    for bad in (
        "https://github.com/acme/tool/",
        "https://gitlab.com/acme/tool",
        "https://github.com/acme/tool/tree/main",
        "http://github.com/acme/tool",
    ):
        issues = validator.validate(_make_manifest(repository=bad))
        assert any(".repository" in i for i in issues), bad


def test_latest_version_must_be_semver():
    issues = SchemaValidator.for_manifest().validate(_make_manifest(latest_version="1.2"))
    assert any(".latest_version" in i for i in issues)


@pytest.mark.parametrize(
    "field,value",
    [
        ("repository", "https://github.com/acme/tool\n"),
        ("id", "time-export\n"),
        ("latest_version", "1.2.0\n"),
    ],
)
def test_trailing_newline_does_not_satisfy_pattern(field, value):
    issues = SchemaValidator.for_manifest().validate(_make_manifest(**{field: value}))
    assert any(f".{field}" in i and "does not match pattern" in i for i in issues)


def test_unexpected_property_rejected():
    issues = SchemaValidator.for_manifest().validate(_make_manifest(color="blue"))
    assert any("unexpected property 'color'" in i for i in issues)


def test_type_errors_reported():
    validator = SchemaValidator.for_manifest()
    issues = validator.validate(_make_manifest(tags="export"))
    assert any(".tags" in i and "expected type 'array'" in i for i in issues)

    issues = validator.validate(_make_manifest(tags=["ok", 3]))
    assert any(".tags[1]" in i for i in issues)


def test_boolean_is_not_an_integer():
    issues = SchemaValidator.for_manifest().validate(_make_manifest(downloads=True))
    assert any(".downloads" in i for i in issues)


def test_negative_downloads_rejected():
    issues = SchemaValidator.for_manifest().validate(_make_manifest(downloads=-1))
    assert any("below minimum" in i for i in issues)


def test_all_violations_reported():
    issues = SchemaValidator.for_manifest().validate(
        _make_manifest(name="", description="short", repository="nope")
    )
    assert len(issues) >= 3


def test_root_type_mismatch():
    issues = SchemaValidator.for_manifest().validate(["not", "an", "object"])
    assert issues == ["/: expected type 'object', got array"]


def test_validator_is_immutable_and_isolated():
    schema = {"type": "object", "required": ["a"]}
    validator = SchemaValidator(schema)
    schema["required"].append("b")
    assert validator.validate({"a": 1}) == []
    with pytest.raises(AttributeError):
        validator.schema = {}


def test_validate_schema_helper():
    assert validate_schema("x", {"type": "string", "minLength": 2}) == [
        "/: string too short (min 2, got 1)"
    ]
