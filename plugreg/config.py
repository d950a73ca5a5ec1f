"""Configuration — where the plugins tree and the registry live.

Settings come from an optional YAML file (``plugreg.yaml`` in the working
directory by default) and can be overridden from the command line. Relative
paths in the file are resolved against the file's directory.

    plugins_dir: plugins
    registry_path: registry.json
    manifest_filename: plugin.json
    schema_ref: ./registry.schema.json
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from plugreg.registry.errors import ConfigError
from plugreg.registry.models import DEFAULT_SCHEMA_REF
from plugreg.utils.file_scanner import DEFAULT_MANIFEST_FILENAME

DEFAULT_CONFIG_FILE = "plugreg.yaml"


@dataclass(frozen=True)
class RegistryConfig:
    plugins_dir: Path = Path("plugins")
    registry_path: Path = Path("registry.json")
    manifest_filename: str = DEFAULT_MANIFEST_FILENAME
    schema_ref: str = DEFAULT_SCHEMA_REF

    def with_overrides(self, **overrides) -> RegistryConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        for key in ("plugins_dir", "registry_path"):
            if key in changes:
                changes[key] = Path(changes[key])
        return replace(self, **changes)


def load_config(path: str | Path | None = None) -> RegistryConfig:
    """Load configuration from ``path``, or from plugreg.yaml when present.

    An explicitly given path must exist; the default file is optional.
    """
    explicit = path is not None
    config_path = Path(path) if explicit else Path(DEFAULT_CONFIG_FILE)

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {config_path}")
        return RegistryConfig()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a mapping at the top level")

    known = {f.name for f in fields(RegistryConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{config_path}: unknown setting(s): {', '.join(unknown)}")

    base_dir = config_path.parent
    values: dict = {}
    for key, value in data.items():
        if key in ("plugins_dir", "registry_path"):
            value = Path(value)
            if not value.is_absolute():
                value = base_dir / value
        else:
            value = str(value)
        values[key] = value

    return RegistryConfig(**values)
