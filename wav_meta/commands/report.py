from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Sequence

from ..app import WavMetaApp
from . import output


def run(app: WavMetaApp, paths: Sequence[Path], *, json_output: bool = False) -> int:
    report = asyncio.run(app.analyze(paths))
    if json_output:
        print(output.dump_json(report.to_record()))
        return 0
    print(
        f"Files: {report.total_files} total, {report.processed_files} read, "
        f"{report.failed_files} failed"
    )
    print(f"iXML present: {report.has_ixml}  bext present: {report.has_bwf}")
    print(f"Average size: {report.average_file_size:.0f} bytes")
    print("Field coverage:")
    for name, pct in report.field_coverage.items():
        print(f"  {name:<12} {pct:5.1f}%")
    print(f"Shows: {', '.join(sorted(report.shows)) or '-'}")
    print(f"Categories: {', '.join(sorted(report.categories)) or '-'}")
    if report.duplicates:
        print("Duplicate scene/take:")
        for group in report.duplicates:
            print(f"  {group.scene_take}")
            output.print_lines(f"    {path}" for path in group.files)
    return 0
