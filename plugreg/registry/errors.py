"""Fatal registry errors. Per-manifest problems are ValidationIssues instead."""

from __future__ import annotations

from plugreg.spec.issues import ValidationIssue


class RegistryError(Exception):
    """Base class for errors that abort a registry operation."""


class ConfigError(RegistryError):
    """The configuration file is unreadable or has unknown keys."""


class RegistryBuildError(RegistryError):
    """The plugins tree has invalid manifests, so no registry was written."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__(f"{len(issues)} manifest error(s) found; registry not written")


class RegistryWriteError(RegistryError):
    """The registry document could not be written."""


class RegistryReadError(RegistryError):
    """The registry document is missing or is not valid JSON."""


class ScaffoldError(RegistryError):
    """A new manifest could not be created."""

    def __init__(self, message: str, details: list[str] | None = None):
        self.details = details or []
        super().__init__(message)
