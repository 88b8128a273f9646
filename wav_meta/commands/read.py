from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Sequence

from ..app import WavMetaApp
from . import output


def run(app: WavMetaApp, paths: Sequence[Path], *, json_output: bool = False) -> int:
    results = asyncio.run(app.scan(paths))
    if json_output:
        payload = [
            result.record.to_record()
            if result.record is not None
            else {"path": str(result.path), "error": result.error}
            for result in results
        ]
        print(output.dump_json(payload))
    else:
        for result in results:
            if result.record is not None:
                print(output.render_record(result.record))
            else:
                print(output.error(str(result.path), result.error))
    return 0 if all(result.ok for result in results) else 1
