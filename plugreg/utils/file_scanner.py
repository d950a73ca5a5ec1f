"""File scanner — locate plugin manifests under the plugins root."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

DEFAULT_MANIFEST_FILENAME = "plugin.json"

# Directories to always skip, in addition to hidden ones
SKIP_DIRS = {"__pycache__", "node_modules"}


@dataclass(frozen=True)
class ManifestLocation:
    """A manifest file and its directory segments relative to the root."""

    file_path: Path
    segments: tuple[str, ...]

    @property
    def relative_path(self) -> str:
        return "/".join(self.segments)


class ManifestWalker:
    """Iterate over every manifest leaf directory below ``root``.

    A directory holding a manifest file is a leaf: its own children are not
    visited. Each call to ``iter()`` starts a fresh traversal, so a walker can
    be consumed more than once. The traversal uses an explicit stack and
    visits siblings in sorted name order.
    """

    def __init__(self, root: str | Path, manifest_filename: str = DEFAULT_MANIFEST_FILENAME):
        self.root = Path(root)
        self.manifest_filename = manifest_filename

    def __iter__(self) -> Iterator[ManifestLocation]:
        if not self.root.is_dir():
            return

        stack: list[tuple[Path, tuple[str, ...]]] = [
            (child, (child.name,)) for child in reversed(_child_dirs(self.root))
        ]
        while stack:
            directory, segments = stack.pop()
            manifest = directory / self.manifest_filename
            if manifest.is_file():
                yield ManifestLocation(file_path=manifest, segments=segments)
                continue
            for child in reversed(_child_dirs(directory)):
                stack.append((child, segments + (child.name,)))


def _child_dirs(directory: Path) -> list[Path]:
    return sorted(
        (item for item in directory.iterdir() if item.is_dir() and _should_include(item)),
        key=lambda item: item.name,
    )


def _should_include(path: Path) -> bool:
    """Check if a directory should be traversed."""
    return not path.name.startswith(".") and path.name not in SKIP_DIRS


def scan_manifests(
    root: str | Path, manifest_filename: str = DEFAULT_MANIFEST_FILENAME
) -> list[ManifestLocation]:
    """Collect every manifest location below ``root`` into a list."""
    return list(ManifestWalker(root, manifest_filename))
