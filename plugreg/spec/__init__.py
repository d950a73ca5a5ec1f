"""Schemas for plugin manifests and the registry document.

This package provides:
1. Schema — JSON Schema definitions for manifests and the registry
2. Validator — a structural validator that evaluates those schemas
3. Issues — the typed validation issues every check reports
"""

REGISTRY_FORMAT_VERSION = "1.0.0"

SCHEMA_BASE_URI = "https://plugreg.dev/schemas"
