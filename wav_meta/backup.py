"""Backup-backed write transactions for in-place file edits.

``stage_write`` snapshots the current bytes of a file next to it and returns a
``StagedWrite``. The caller mutates the file and then either commits (the
snapshot is discarded) or rolls back (the snapshot is copied over the file).
Every staged write gets its own uniquely named snapshot, so concurrent writers
never share a backup path.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from .fs_utils import copy_file, remove, run_blocking

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".wavmeta-backup"


class TransactionStateError(RuntimeError):
    """Raised when a staged write is committed or rolled back twice."""


@dataclass
class StagedWrite:
    path: Path
    backup_path: Path
    keep_backup: bool = False
    state: str = "staged"

    async def commit(self) -> None:
        self._require_staged()
        if not self.keep_backup:
            await remove(self.backup_path)
        self.state = "committed"

    async def rollback(self) -> None:
        self._require_staged()
        await copy_file(self.backup_path, self.path)
        await remove(self.backup_path)
        self.state = "rolled_back"
        logger.info("Restored %s from backup", self.path)

    async def __aenter__(self) -> "StagedWrite":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        if self.state != "staged":
            return False
        if exc_type is None:
            await self.commit()
            return False
        try:
            await self.rollback()
        except OSError as rollback_exc:
            logger.error(
                "Failed to restore %s after error; backup kept at %s: %s",
                self.path,
                self.backup_path,
                rollback_exc,
            )
        return False

    def _require_staged(self) -> None:
        if self.state != "staged":
            raise TransactionStateError(f"write to {self.path} already {self.state}")


async def stage_write(
    path: Path, *, suffix: str = BACKUP_SUFFIX, keep_backup: bool = False
) -> StagedWrite:
    backup_path = await run_blocking(_snapshot, path, suffix)
    logger.debug("Staged write for %s (backup %s)", path, backup_path.name)
    return StagedWrite(path=path, backup_path=backup_path, keep_backup=keep_backup)


def _snapshot(path: Path, suffix: str) -> Path:
    fd, name = tempfile.mkstemp(prefix=f"{path.name}.", suffix=suffix, dir=path.parent)
    os.close(fd)
    backup_path = Path(name)
    try:
        shutil.copy2(path, backup_path)
    except OSError:
        backup_path.unlink(missing_ok=True)
        raise
    return backup_path
