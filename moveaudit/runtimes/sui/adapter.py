from __future__ import annotations

import logging
from fnmatch import fnmatch
from pathlib import Path

logger = logging.getLogger(__name__)

MANIFEST = "Move.toml"
SOURCES_DIR = "sources"
SOURCE_SUFFIX = ".move"


class SuiProject:
    """Read-only view of a Sui Move package on disk."""

    def __init__(self, root: Path, exclude_patterns: list[str] | None = None) -> None:
        self.root = root
        self._exclude = exclude_patterns or []

    def has_manifest(self) -> bool:
        return (self.root / MANIFEST).is_file()

    def discover(self) -> tuple[list[Path], list[str]]:
        """Return (source files, warnings).

        Files are the `.move` files under `<root>/sources`, recursively, in
        sorted order. Exclude globs match the path relative to `sources`.
        """
        warnings: list[str] = []
        sources = self.root / SOURCES_DIR
        if not sources.is_dir():
            msg = f'No "{SOURCES_DIR}" directory found in {self.root}; nothing to audit'
            logger.warning(msg)
            warnings.append(msg)
            return [], warnings

        files: list[Path] = []
        for path in sorted(sources.rglob(f"*{SOURCE_SUFFIX}")):
            if not path.is_file():
                continue
            rel = path.relative_to(sources).as_posix()
            if any(fnmatch(rel, pattern) for pattern in self._exclude):
                logger.debug("excluded %s", rel)
                continue
            files.append(path)
        return files, warnings

    @staticmethod
    def find_root(file_path: Path) -> Path | None:
        """Walk up from a source file to the nearest directory holding Move.toml."""
        for parent in file_path.resolve().parents:
            if (parent / MANIFEST).is_file():
                return parent
        return None
