from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# e.g. PR2_Allen_Sc5.14D_01.wav
SCENE_TAKE_PATTERN = re.compile(
    r"^(?P<show>[^_]+)_(?P<category>[^_]+)_Sc(?P<scene>\d+(?:\.\d*)?)(?P<slate>[A-Z]?)_(?P<take>\d+)\.wav$",
    re.IGNORECASE,
)
WAV_SUFFIX = re.compile(r"\.wav$", re.IGNORECASE)


@dataclass(slots=True)
class FilenameGuess:
    show: str = ""
    category: str = ""
    scene: str = ""
    slate: str = ""
    take: str = ""
    subcategory: str = ""


def guess_metadata_from_filename(filename: str) -> Optional[FilenameGuess]:
    """Derive structural fields from a bare filename, or None when nothing fits."""
    if not isinstance(filename, str) or not filename:
        return None
    match = SCENE_TAKE_PATTERN.match(filename)
    if match:
        scene = match.group("scene")
        return FilenameGuess(
            show=match.group("show"),
            category=match.group("category"),
            scene=scene,
            slate=match.group("slate"),
            take=match.group("take"),
            subcategory=scene.split(".", 1)[0],
        )
    return _generic_guess(filename)


def _generic_guess(filename: str) -> Optional[FilenameGuess]:
    parts = WAV_SUFFIX.sub("", filename).split("_")
    if len(parts) < 2:
        return None
    guess = FilenameGuess(show=parts[0], category=parts[1])
    if len(parts) > 2:
        if parts[-1].isdigit() and parts[-1].isascii():
            guess.take = parts.pop()
        guess.scene = "_".join(parts[2:])
    return guess
