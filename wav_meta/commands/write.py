from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Sequence, Tuple

from ..app import WavMetaApp
from ..tagging import FieldUpdate
from . import output


def parse_assignments(assignments: Sequence[str]) -> List[Tuple[str, str]]:
    parsed: List[Tuple[str, str]] = []
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Expected FIELD=VALUE, got {item!r}")
        parsed.append((name.strip().lower(), value))
    return parsed


def run(app: WavMetaApp, paths: Sequence[Path], assignments: Sequence[str]) -> int:
    edits = parse_assignments(assignments)
    files = app.collect(paths)
    updates: List[FieldUpdate] = [
        (path, name, value) for path in files for name, value in edits
    ]
    results = asyncio.run(app.batch_update(updates))
    for result in results:
        if result.ok:
            print(output.ok(str(result.path)))
        else:
            print(output.error(str(result.path), result.error))
    return 0 if all(result.ok for result in results) else 1
