from __future__ import annotations

import fnmatch
from collections.abc import Iterator
from pathlib import Path
from typing import Iterable, List

from .config import LibrarySettings


class LibraryScanner:
    """Walks directories and yields the WAV files the metadata services can read."""

    def __init__(self, settings: LibrarySettings) -> None:
        self.settings = settings
        self._exts = {ext.lower() for ext in self.settings.include_extensions}

    def iter_files(self) -> Iterator[Path]:
        for root in self.settings.roots:
            yield from self.iter_directory(root)

    def iter_directory(self, directory: Path) -> Iterator[Path]:
        if not directory.exists():
            return
        for file_path in sorted(directory.rglob("*")):
            if file_path.is_file() and self._should_include(file_path):
                yield file_path

    def expand(self, paths: Iterable[Path]) -> List[Path]:
        """Resolve a mix of files and directories into a de-duplicated file list."""
        seen: set[Path] = set()
        files: List[Path] = []
        for raw in paths:
            path = Path(raw).expanduser().resolve()
            candidates = self.iter_directory(path) if path.is_dir() else [path]
            for candidate in candidates:
                if candidate in seen:
                    continue
                seen.add(candidate)
                files.append(candidate)
        return files

    def _should_include(self, path: Path) -> bool:
        if path.suffix.lower() not in self._exts:
            return False
        rel = str(path)
        for pattern in self.settings.exclude_patterns:
            if fnmatch.fnmatch(rel, pattern):
                return False
        return True
