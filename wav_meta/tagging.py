from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

from . import fs_utils
from .backup import BACKUP_SUFFIX, stage_write
from .ixml import build_ixml
from .meta_keys import EDITABLE_FIELDS, WAV_EXTENSION
from .models import (
    BroadcastMetadata,
    FileProcessingResult,
    MetadataError,
    MetadataIOError,
    NotFound,
    StructuredMetadata,
    UnsupportedFormat,
    WavRecord,
)
from .resolver import TRUE_TOKENS, resolve
from .riff import InvalidContainer, WavContainer

logger = logging.getLogger(__name__)

FieldUpdate = Tuple[Path, str, object]


class MetadataService:
    """Reads canonical records from WAV files and writes edited records back."""

    def __init__(
        self,
        *,
        keep_backups: bool = False,
        backup_suffix: str = BACKUP_SUFFIX,
        concurrency: int = 4,
    ) -> None:
        self.keep_backups = keep_backups
        self.backup_suffix = backup_suffix
        self.concurrency = max(1, concurrency)

    async def read_metadata(self, path: Path) -> WavRecord:
        path = Path(path)
        self._check_extension(path)
        if not await fs_utils.exists(path):
            raise NotFound(f"File not found: {path}")
        try:
            buffer = await fs_utils.read_bytes(path)
            stat = await fs_utils.stat(path)
        except FileNotFoundError as exc:
            raise NotFound(f"File not found: {path}") from exc
        except OSError as exc:
            raise MetadataIOError(f"Failed to read {path}: {exc}") from exc
        return resolve(path, buffer, stat)

    async def write_metadata(self, path: Path, record: WavRecord) -> None:
        path = Path(path)
        self._check_extension(path)
        if not await fs_utils.exists(path):
            raise NotFound(f"File not found: {path}")
        try:
            staged = await stage_write(
                path, suffix=self.backup_suffix, keep_backup=self.keep_backups
            )
        except OSError as exc:
            raise MetadataIOError(f"Failed to back up {path}: {exc}") from exc
        try:
            async with staged:
                buffer = await fs_utils.read_bytes(path)
                output = render_container(buffer, record)
                await fs_utils.write_bytes(path, output)
        except OSError as exc:
            raise MetadataIOError(f"Failed to write metadata to {path}: {exc}") from exc
        logger.info("Metadata written: %s", path)

    async def read_many(self, paths: Iterable[Path]) -> List[FileProcessingResult]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _read(path: Path) -> FileProcessingResult:
            async with semaphore:
                try:
                    return FileProcessingResult(path=path, record=await self.read_metadata(path))
                except MetadataError as exc:
                    logger.warning("Failed to read metadata for %s: %s", path, exc)
                    return FileProcessingResult(path=path, error=str(exc))

        return list(await asyncio.gather(*(_read(Path(p)) for p in paths)))

    async def batch_update(self, updates: Sequence[FieldUpdate]) -> List[FileProcessingResult]:
        """Apply field edits grouped per file; each file is read and written once."""
        grouped: Dict[Path, List[Tuple[str, object]]] = defaultdict(list)
        for path, field_name, value in updates:
            grouped[Path(path)].append((field_name, value))
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _update(path: Path, edits: List[Tuple[str, object]]) -> FileProcessingResult:
            async with semaphore:
                try:
                    record = await self.read_metadata(path)
                    apply_edits(record, edits)
                    await self.write_metadata(path, record)
                    return FileProcessingResult(path=path, record=record)
                except (MetadataError, ValueError) as exc:
                    logger.warning("Batch update failed for %s: %s", path, exc)
                    return FileProcessingResult(path=path, error=str(exc))

        return list(
            await asyncio.gather(*(_update(path, edits) for path, edits in grouped.items()))
        )

    @staticmethod
    def _check_extension(path: Path) -> None:
        if path.suffix.lower() != WAV_EXTENSION:
            raise UnsupportedFormat(f"Unsupported file format: {path.suffix or path.name}")


def apply_edits(record: WavRecord, edits: Iterable[Tuple[str, object]]) -> None:
    for field_name, value in edits:
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Field {field_name!r} is not editable")
        if field_name in {"wildtrack", "circled"}:
            value = "true" if _truthy(value) else "false"
        setattr(record, field_name, "" if value is None else str(value))


def merge_record(record: WavRecord) -> Tuple[BroadcastMetadata, StructuredMetadata]:
    """Project the record's editable fields onto copies of its chunk data."""
    bwf = record.bwf.copy() if record.bwf is not None else BroadcastMetadata()
    bwf.description = record.note
    bwf.originator = record.show
    ixml = record.ixml.copy() if record.ixml is not None else StructuredMetadata()
    ixml = replace(
        ixml,
        project=record.show,
        scene=record.scene,
        take=record.take,
        slate=record.slate,
        note=record.note,
        circled="TRUE" if record.circled == "true" else "FALSE",
    )
    return bwf, ixml


def render_container(buffer: bytes, record: WavRecord) -> bytes:
    try:
        container = WavContainer.from_bytes(buffer)
    except InvalidContainer as exc:
        raise MetadataIOError(f"Failed to parse {record.path}: {exc}") from exc
    bwf, ixml = merge_record(record)
    xml_text = build_ixml(ixml)
    container.set_bext(bwf)
    container.set_ixml(xml_text)
    return container.to_bytes()


def _truthy(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_TOKENS
