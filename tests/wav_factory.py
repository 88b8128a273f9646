from __future__ import annotations

import struct
from pathlib import Path
from typing import Optional

from wav_meta.models import BroadcastMetadata
from wav_meta.riff import RiffChunk, WavContainer, encode_bext


def fmt_chunk(sample_rate: int = 48000, channels: int = 1, bits: int = 16, audio_format: int = 1) -> bytes:
    block_align = channels * bits // 8
    return struct.pack(
        "<HHIIHH", audio_format, channels, sample_rate, sample_rate * block_align, block_align, bits
    )


def wav_bytes(
    *,
    sample_rate: int = 48000,
    channels: int = 1,
    bits: int = 16,
    frames: int = 4800,
    bext: Optional[BroadcastMetadata] = None,
    raw_bext: Optional[bytes] = None,
    ixml: Optional[str] = None,
    extra_chunks: tuple[RiffChunk, ...] = (),
) -> bytes:
    chunks = [RiffChunk(b"fmt ", fmt_chunk(sample_rate, channels, bits))]
    if bext is not None:
        chunks.append(RiffChunk(b"bext", encode_bext(bext)))
    elif raw_bext is not None:
        chunks.append(RiffChunk(b"bext", raw_bext))
    chunks.extend(extra_chunks)
    block_align = channels * bits // 8
    chunks.append(RiffChunk(b"data", bytes(frames * block_align)))
    if ixml is not None:
        chunks.append(RiffChunk(b"iXML", ixml.encode("utf-8")))
    return WavContainer(chunks).to_bytes()


def make_wav(path: Path, **kwargs) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(wav_bytes(**kwargs))
    return path


def ixml_doc(body: str, root: str = "BWFXML") -> str:
    return f'<?xml version="1.0" encoding="UTF-8"?><{root}>{body}</{root}>'
