"""Tests for configuration loading."""

import tempfile
from pathlib import Path

import pytest
import yaml

from plugreg.config import RegistryConfig, load_config
from plugreg.registry.errors import ConfigError


def _write_config(tmpdir: str, data) -> Path:
    path = Path(tmpdir) / "plugreg.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


def test_defaults(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.chdir(tmpdir)
        config = load_config()
        assert config == RegistryConfig()
        assert config.manifest_filename == "plugin.json"


def test_load_relative_paths_resolved_against_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write_config(
            tmpdir,
            {"plugins_dir": "catalog", "registry_path": "out/index.json", "manifest_filename": "manifest.json"},
        )
        config = load_config(path)
        assert config.plugins_dir == Path(tmpdir) / "catalog"
        assert config.registry_path == Path(tmpdir) / "out" / "index.json"
        assert config.manifest_filename == "manifest.json"


def test_default_file_picked_up_from_cwd(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        _write_config(tmpdir, {"schema_ref": "https://example.com/registry.schema.json"})
        monkeypatch.chdir(tmpdir)
        assert load_config().schema_ref == "https://example.com/registry.schema.json"


def test_explicit_missing_file():
    with pytest.raises(ConfigError):
        load_config("/nonexistent/plugreg.yaml")


def test_unknown_keys_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write_config(tmpdir, {"plugins_dir": "plugins", "colour": "blue"})
        with pytest.raises(ConfigError, match="colour"):
            load_config(path)


def test_invalid_yaml():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "plugreg.yaml"
        path.write_text("plugins_dir: [unclosed")
        with pytest.raises(ConfigError):
            load_config(path)


def test_non_mapping_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write_config(tmpdir, ["plugins"])
        with pytest.raises(ConfigError):
            load_config(path)


def test_empty_file_gives_defaults():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "plugreg.yaml"
        path.write_text("")
        assert load_config(path) == RegistryConfig()


def test_with_overrides():
    config = RegistryConfig().with_overrides(plugins_dir="elsewhere", registry_path=None)
    assert config.plugins_dir == Path("elsewhere")
    assert config.registry_path == Path("registry.json")
