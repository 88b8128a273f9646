from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from . import fs_utils
from .config import MirrorConfiguration
from .models import MetadataError, MirrorConflict, MirrorError, MirrorResult, WavRecord
from .tagging import MetadataService

logger = logging.getLogger(__name__)

MISC_LABEL = "Misc"
MAX_FOLDER_NAME_LENGTH = 100
GENERAL_ERROR_PATH = "GENERAL"

INVALID_FOLDER_CHARS = re.compile(r'[<>:"/\\|?*]')
WHITESPACE_RUN = re.compile(r"\s+")


def sanitize_folder_name(name: str) -> str:
    cleaned = INVALID_FOLDER_CHARS.sub("_", name)
    cleaned = WHITESPACE_RUN.sub("_", cleaned)[:MAX_FOLDER_NAME_LENGTH]
    # "." and ".." would leave the destination tree.
    if not cleaned.strip("."):
        return "_"
    return cleaned


class MirrorOrganizer:
    """Copies records into a folder tree derived from their metadata fields."""

    def __init__(self, service: MetadataService, *, concurrency: Optional[int] = None) -> None:
        self.service = service
        self.concurrency = max(1, concurrency or service.concurrency)

    def build_destination(self, record: WavRecord, config: MirrorConfiguration) -> Path:
        path = config.destination_root
        for level in config.sorted_levels():
            raw_value = getattr(record, level.field, "") or ""
            label = raw_value.strip() or MISC_LABEL
            path = path / sanitize_folder_name(label)
        return path / record.filename

    async def select(
        self, config: MirrorConfiguration, records: Iterable[WavRecord]
    ) -> List[WavRecord]:
        records = list(records)
        if config.selected_paths is None:
            return records
        wanted = set(config.selected_paths)
        resolved = await fs_utils.run_blocking(
            lambda: [record.path.resolve() for record in records]
        )
        return [record for record, path in zip(records, resolved) if path in wanted]

    async def check_conflicts(
        self, config: MirrorConfiguration, records: Iterable[WavRecord]
    ) -> List[str]:
        conflicts: List[str] = []
        for record in await self.select(config, records):
            destination = self.build_destination(record, config)
            if await fs_utils.exists(destination):
                conflicts.append(
                    f"{record.filename} would overwrite existing file at: {destination}"
                )
        return conflicts

    async def mirror(
        self, config: MirrorConfiguration, records: Iterable[WavRecord]
    ) -> MirrorResult:
        result = MirrorResult()
        try:
            await fs_utils.ensure_directory(config.destination_root)
        except OSError as exc:
            logger.error("Cannot create mirror destination %s: %s", config.destination_root, exc)
            result.errors.append(MirrorError(GENERAL_ERROR_PATH, str(exc)))
            return result

        selected = await self.select(config, records)
        logger.info("Mirroring %d file(s) into %s", len(selected), config.destination_root)

        planned: List[Tuple[int, WavRecord, Path]] = []
        claimed: Set[Path] = set()
        early_conflicts: List[Tuple[int, MirrorConflict]] = []
        for index, record in enumerate(selected):
            destination = self.build_destination(record, config)
            if destination in claimed:
                early_conflicts.append((index, MirrorConflict(record.path, destination)))
                continue
            claimed.add(destination)
            planned.append((index, record, destination))

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _run(record: WavRecord, destination: Path):
            async with semaphore:
                return await self._mirror_one(record, destination)

        outcomes = await asyncio.gather(*(_run(record, dest) for _, record, dest in planned))

        ordered: List[Tuple[int, object]] = list(early_conflicts)
        for (index, _, _), outcome in zip(planned, outcomes):
            ordered.append((index, outcome))
        ordered.sort(key=lambda item: item[0])

        for _, outcome in ordered:
            if isinstance(outcome, MirrorConflict):
                result.conflicts.append(outcome)
            elif isinstance(outcome, MirrorError):
                result.errors.append(outcome)
            else:
                result.copied_count += 1

        logger.info(
            "Mirror finished: %d copied, %d conflict(s), %d error(s)",
            result.copied_count,
            len(result.conflicts),
            len(result.errors),
        )
        return result

    async def _mirror_one(self, record: WavRecord, destination: Path):
        if await fs_utils.exists(destination):
            logger.debug("Skipping %s: %s already exists", record.path, destination)
            return MirrorConflict(record.path, destination, "skip")
        try:
            await fs_utils.ensure_directory(destination.parent)
            await fs_utils.copy_file(record.path, destination)
        except OSError as exc:
            logger.warning("Failed to copy %s -> %s: %s", record.path, destination, exc)
            return MirrorError(str(record.path), str(exc))
        try:
            await self.service.write_metadata(destination, record)
        except MetadataError as exc:
            logger.warning("Failed to embed metadata in %s: %s", destination, exc)
            await self._discard_copy(destination)
            return MirrorError(str(record.path), str(exc))
        logger.info("Copied %s -> %s", record.path, destination)
        return None

    @staticmethod
    async def _discard_copy(destination: Path) -> None:
        try:
            await fs_utils.remove(destination)
        except OSError as exc:
            logger.warning("Failed to remove partial copy %s: %s", destination, exc)
