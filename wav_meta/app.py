from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .analysis import MetadataAnalysis, analyze
from .config import MirrorConfiguration, Settings
from .models import FileProcessingResult, MirrorResult, WavRecord
from .organizer import MirrorOrganizer
from .scanner import LibraryScanner
from .tagging import FieldUpdate, MetadataService

logger = logging.getLogger(__name__)


@dataclass
class WavMetaApp:
    settings: Settings
    scanner: LibraryScanner
    service: MetadataService
    organizer: MirrorOrganizer

    @classmethod
    def create(cls, settings: Settings) -> "WavMetaApp":
        service = MetadataService(
            keep_backups=settings.writer.keep_backups,
            backup_suffix=settings.writer.backup_suffix,
            concurrency=settings.batch.worker_concurrency,
        )
        return cls(
            settings=settings,
            scanner=LibraryScanner(settings.library),
            service=service,
            organizer=MirrorOrganizer(service),
        )

    def collect(self, paths: Optional[Sequence[Path]] = None) -> List[Path]:
        if paths:
            return self.scanner.expand(paths)
        return list(self.scanner.iter_files())

    async def scan(self, paths: Optional[Sequence[Path]] = None) -> List[FileProcessingResult]:
        files = self.collect(paths)
        logger.info("Reading metadata from %d file(s)", len(files))
        return await self.service.read_many(files)

    async def read_metadata(self, path: Path) -> WavRecord:
        return await self.service.read_metadata(path)

    async def write_metadata(self, path: Path, record: WavRecord) -> None:
        await self.service.write_metadata(path, record)

    async def batch_update(self, updates: Sequence[FieldUpdate]) -> List[FileProcessingResult]:
        return await self.service.batch_update(updates)

    async def mirror_files(
        self, config: MirrorConfiguration, records: Iterable[WavRecord]
    ) -> MirrorResult:
        return await self.organizer.mirror(config, records)

    async def check_file_conflicts(
        self, config: MirrorConfiguration, records: Iterable[WavRecord]
    ) -> List[str]:
        return await self.organizer.check_conflicts(config, records)

    async def analyze(self, paths: Optional[Sequence[Path]] = None) -> MetadataAnalysis:
        return analyze(await self.scan(paths))
