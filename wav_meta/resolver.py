"""Merge container chunks and the filename into one canonical record.

Field precedence is data, not code: ``FIELD_PRECEDENCE`` lists, per record
field, the ordered sources to consult. ``first_non_empty`` evaluates one row and
``resolve_fields`` applies the whole table followed by scene/take recovery from
the bext description.
"""

from __future__ import annotations

import io
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from mutagen import MutagenError
from mutagen.wave import WAVE

from .heuristics import FilenameGuess, guess_metadata_from_filename
from .ixml import parse_ixml
from .models import (
    BroadcastMetadata,
    CorruptChunk,
    FileInfo,
    MetadataIOError,
    StructuredMetadata,
    WavRecord,
)
from .riff import InvalidContainer, WavContainer

logger = logging.getLogger(__name__)

SCENE_TAKE_IN_TEXT = re.compile(
    r"S(?:C|CNE)?[_\s]*(\S+?)[_\s]*T(?:K|AKE)?[_\s]*(\S+)", re.IGNORECASE
)
TRUE_TOKENS = {"true", "1", "yes", "y", "t"}


@dataclass(frozen=True, slots=True)
class ResolutionSources:
    ixml: Optional[StructuredMetadata] = None
    guess: Optional[FilenameGuess] = None
    bwf: Optional[BroadcastMetadata] = None


@dataclass(frozen=True, slots=True)
class Source:
    name: str
    accessor: Callable[[ResolutionSources], Optional[str]]


def _from_ixml(attr: str) -> Source:
    return Source(
        f"ixml.{attr}", lambda s: getattr(s.ixml, attr) if s.ixml is not None else None
    )


def _from_filename(attr: str) -> Source:
    return Source(
        f"filename.{attr}",
        lambda s: getattr(s.guess, attr) if s.guess is not None else None,
    )


def _from_bext(attr: str) -> Source:
    return Source(
        f"bext.{attr}", lambda s: getattr(s.bwf, attr) if s.bwf is not None else None
    )


FIELD_PRECEDENCE: Tuple[Tuple[str, Tuple[Source, ...]], ...] = (
    ("show", (_from_ixml("project"), _from_filename("show"), _from_bext("originator"))),
    ("scene", (_from_ixml("scene"), _from_filename("scene"))),
    ("take", (_from_ixml("take"), _from_filename("take"))),
    ("slate", (_from_ixml("slate"), _from_filename("slate"))),
    ("category", (_from_ixml("category"), _from_filename("category"))),
    ("subcategory", (_from_ixml("subcategory"), _from_filename("subcategory"))),
    ("note", (_from_ixml("note"), _from_bext("description"))),
)

FLAG_FIELDS: Tuple[Tuple[str, Source], ...] = (
    ("wildtrack", _from_ixml("wild_track")),
    ("circled", _from_ixml("circled")),
)


def first_non_empty(sources: Tuple[Source, ...], ctx: ResolutionSources) -> str:
    for source in sources:
        value = source.accessor(ctx)
        if value:
            return str(value)
    return ""


def coerce_flag(value: Optional[str]) -> str:
    if value is None:
        return "false"
    return "true" if str(value).strip().lower() in TRUE_TOKENS else "false"


def recover_scene_take(description: str) -> Optional[Tuple[str, str]]:
    if not description:
        return None
    match = SCENE_TAKE_IN_TEXT.search(description)
    if not match:
        return None
    return match.group(1), match.group(2)


def resolve_fields(
    ixml: Optional[StructuredMetadata],
    guess: Optional[FilenameGuess],
    bwf: Optional[BroadcastMetadata],
) -> Dict[str, str]:
    ctx = ResolutionSources(ixml=ixml, guess=guess, bwf=bwf)
    fields = {name: first_non_empty(sources, ctx) for name, sources in FIELD_PRECEDENCE}
    if (not fields["scene"] or not fields["take"]) and bwf is not None:
        recovered = recover_scene_take(bwf.description)
        if recovered:
            scene, take = recovered
            fields["scene"] = fields["scene"] or scene
            fields["take"] = fields["take"] or take
            logger.debug("Recovered scene/take %s/%s from bext description", scene, take)
    for name, source in FLAG_FIELDS:
        fields[name] = coerce_flag(source.accessor(ctx))
    return fields


def resolve(path: Path, buffer: bytes, stat: os.stat_result) -> WavRecord:
    """Build the canonical record for ``path`` from its bytes and stat result."""
    try:
        container = WavContainer.from_bytes(buffer)
    except InvalidContainer as exc:
        raise MetadataIOError(f"Failed to read metadata for {path}: {exc}") from exc
    file_info = _file_info(path, buffer, container, stat)
    bwf = _decode_chunk(path, "bext", container.get_bext)
    ixml = _decode_chunk(path, "iXML", lambda: _parse_optional_ixml(container))
    guess = guess_metadata_from_filename(path.name)
    fields = resolve_fields(ixml, guess, bwf)
    return WavRecord(
        path=path,
        bwf=bwf or BroadcastMetadata(),
        ixml=ixml,
        file_info=file_info,
        **fields,
    )


def _parse_optional_ixml(container: WavContainer) -> Optional[StructuredMetadata]:
    text = container.get_ixml()
    if not text or not text.strip():
        return None
    return parse_ixml(text)


def _decode_chunk(path: Path, label: str, decoder: Callable[[], Optional[object]]):
    try:
        return decoder()
    except CorruptChunk as exc:
        logger.warning("Ignoring unreadable %s chunk in %s: %s", label, path, exc)
        return None


def _file_info(
    path: Path, buffer: bytes, container: WavContainer, stat: os.stat_result
) -> FileInfo:
    try:
        info = WAVE(io.BytesIO(buffer)).info
    except (MutagenError, ArithmeticError) as exc:
        raise MetadataIOError(f"Failed to read stream info for {path}: {exc}") from exc
    fmt = container.fmt
    duration = float(info.length or 0.0)
    if not duration and info.sample_rate:
        duration = container.sample_frames / info.sample_rate
    return FileInfo(
        file_name=path.name,
        file_size=stat.st_size,
        last_modified=datetime.fromtimestamp(stat.st_mtime),
        sample_rate=info.sample_rate,
        bit_depth=info.bits_per_sample,
        channels=info.channels,
        duration=duration,
        format_tag=fmt.audio_format if fmt else 0,
    )
