from __future__ import annotations

import asyncio
import errno
import functools
import os
import shutil
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")


def path_exists(path: Path) -> Optional[bool]:
    try:
        path.stat()
        return True
    except FileNotFoundError:
        return False
    except OSError as exc:
        if exc.errno != errno.ENAMETOOLONG:
            raise
        parent = path.parent
        try:
            with os.scandir(parent) as it:
                for entry in it:
                    if entry.name == path.name:
                        return True
        except FileNotFoundError:
            return None
        return False


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


async def read_bytes(path: Path) -> bytes:
    return await run_blocking(path.read_bytes)


async def write_bytes(path: Path, data: bytes) -> None:
    await run_blocking(path.write_bytes, data)


async def stat(path: Path) -> os.stat_result:
    return await run_blocking(path.stat)


async def exists(path: Path) -> bool:
    return bool(await run_blocking(path_exists, path))


async def copy_file(src: Path, dest: Path) -> None:
    await run_blocking(shutil.copyfile, src, dest)


async def ensure_directory(path: Path) -> None:
    await run_blocking(path.mkdir, parents=True, exist_ok=True)


async def remove(path: Path) -> None:
    await run_blocking(path.unlink, missing_ok=True)
