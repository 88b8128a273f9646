from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..app import WavMetaApp
from ..config import MirrorConfiguration, MirrorLevel
from ..models import WavRecord
from . import output

logger = logging.getLogger(__name__)

EXIT_PARTIAL_FAILURE = 2


def parse_levels(values: Sequence[str]) -> List[MirrorLevel]:
    """Parse ``FIELD`` or ``FIELD:ORDER`` values; bare fields keep their position."""
    levels: List[MirrorLevel] = []
    for position, item in enumerate(values):
        name, sep, order = item.partition(":")
        levels.append(
            MirrorLevel(field=name.strip().lower(), order=int(order) if sep else position)
        )
    return levels


def build_configuration(
    app: WavMetaApp,
    *,
    destination: Optional[Path],
    levels: Sequence[str],
    only: Optional[Sequence[Path]],
) -> MirrorConfiguration:
    mirror_settings = app.settings.mirror
    root = destination or mirror_settings.destination_root
    if root is None:
        raise ValueError("No destination given; pass --dest or set mirror.destination_root")
    return MirrorConfiguration(
        destination_root=root,
        organize_levels=parse_levels(levels) if levels else mirror_settings.organize_levels,
        selected_paths=list(only) if only else None,
    )


def _load_records(app: WavMetaApp, paths: Sequence[Path]) -> List[WavRecord]:
    results = asyncio.run(app.scan(paths))
    for result in results:
        if not result.ok:
            logger.warning("Not mirroring %s: %s", result.path, result.error)
    return [result.record for result in results if result.record is not None]


def run(app: WavMetaApp, config: MirrorConfiguration, paths: Sequence[Path]) -> int:
    records = _load_records(app, paths)
    result = asyncio.run(app.mirror_files(config, records))
    for conflict in result.conflicts:
        print(output.skipped(str(conflict.source_path), f"exists at {conflict.destination_path}"))
    for failure in result.errors:
        print(output.error(failure.path, failure.error))
    print(
        f"Mirror complete: {result.copied_count} copied, "
        f"{len(result.conflicts)} skipped, {len(result.errors)} failed."
    )
    return 0 if result.success else EXIT_PARTIAL_FAILURE


def run_conflicts(app: WavMetaApp, config: MirrorConfiguration, paths: Sequence[Path]) -> int:
    records = _load_records(app, paths)
    conflicts = asyncio.run(app.check_file_conflicts(config, records))
    output.print_lines(conflicts)
    if not conflicts:
        print("No conflicts.")
    return 0
