"""plugreg — build and validate a plugin registry from per-plugin manifests."""

__version__ = "0.1.0"
