"""Chunk-level access to RIFF/WAVE byte buffers.

Only the chunks the metadata services care about are decoded (``fmt ``,
``data``, ``bext`` and ``iXML``). Every other chunk is kept as opaque bytes and
written back in its original position.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .models import BroadcastMetadata, CorruptChunk

logger = logging.getLogger(__name__)

FMT_ID = b"fmt "
DATA_ID = b"data"
BEXT_ID = b"bext"
IXML_ID = b"iXML"

# EBU Tech 3285: fixed part of the bext chunk, coding history follows.
BEXT_STRUCT = struct.Struct("<256s32s32s10s8sIIH64s5h180s")
BEXT_FIXED_SIZE = BEXT_STRUCT.size
# Everything up to and including the time reference; older writers stop here.
BEXT_MIN_SIZE = 256 + 32 + 32 + 10 + 8 + 8

FMT_STRUCT = struct.Struct("<HHIIHH")


class InvalidContainer(ValueError):
    """The buffer is not a RIFF/WAVE container."""


@dataclass(slots=True)
class RiffChunk:
    chunk_id: bytes
    data: bytes


@dataclass(frozen=True, slots=True)
class FmtChunk:
    audio_format: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int


class WavContainer:
    """Opaque reader/writer over the chunks of one WAV byte buffer."""

    def __init__(self, chunks: Iterable[RiffChunk]) -> None:
        self.chunks: List[RiffChunk] = list(chunks)

    @classmethod
    def from_bytes(cls, buffer: bytes) -> "WavContainer":
        if len(buffer) < 12 or buffer[:4] != b"RIFF" or buffer[8:12] != b"WAVE":
            raise InvalidContainer("missing RIFF/WAVE header")
        chunks: List[RiffChunk] = []
        offset = 12
        end = len(buffer)
        while offset + 8 <= end:
            chunk_id = buffer[offset : offset + 4]
            (size,) = struct.unpack_from("<I", buffer, offset + 4)
            start = offset + 8
            stop = start + size
            if stop > end:
                logger.debug(
                    "Chunk %r claims %d bytes but only %d remain", chunk_id, size, end - start
                )
                stop = end
            chunks.append(RiffChunk(chunk_id, buffer[start:stop]))
            offset = stop + (size & 1)
        return cls(chunks)

    def to_bytes(self) -> bytes:
        body = bytearray(b"WAVE")
        for chunk in self.chunks:
            body += chunk.chunk_id
            body += struct.pack("<I", len(chunk.data))
            body += chunk.data
            if len(chunk.data) & 1:
                body += b"\x00"
        return b"RIFF" + struct.pack("<I", len(body)) + bytes(body)

    def find(self, chunk_id: bytes) -> Optional[RiffChunk]:
        for chunk in self.chunks:
            if chunk.chunk_id == chunk_id:
                return chunk
        return None

    @property
    def fmt(self) -> Optional[FmtChunk]:
        chunk = self.find(FMT_ID)
        if chunk is None or len(chunk.data) < FMT_STRUCT.size:
            return None
        return FmtChunk(*FMT_STRUCT.unpack_from(chunk.data))

    @property
    def data_size(self) -> int:
        chunk = self.find(DATA_ID)
        return len(chunk.data) if chunk else 0

    @property
    def sample_frames(self) -> int:
        fmt = self.fmt
        if not fmt or not fmt.block_align:
            return 0
        return self.data_size // fmt.block_align

    def get_bext(self) -> Optional[BroadcastMetadata]:
        chunk = self.find(BEXT_ID)
        if chunk is None:
            return None
        return decode_bext(chunk.data)

    def set_bext(self, bwf: BroadcastMetadata) -> None:
        self._replace_or_insert(BEXT_ID, encode_bext(bwf), before=DATA_ID)

    def get_ixml(self) -> Optional[str]:
        chunk = self.find(IXML_ID)
        if chunk is None:
            return None
        try:
            return chunk.data.rstrip(b"\x00").decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptChunk(f"iXML chunk is not valid UTF-8: {exc}") from exc

    def set_ixml(self, text: str) -> None:
        self._replace_or_insert(IXML_ID, text.encode("utf-8"))

    def _replace_or_insert(
        self, chunk_id: bytes, data: bytes, before: Optional[bytes] = None
    ) -> None:
        existing = self.find(chunk_id)
        if existing is not None:
            existing.data = data
            return
        new_chunk = RiffChunk(chunk_id, data)
        if before is not None:
            for index, chunk in enumerate(self.chunks):
                if chunk.chunk_id == before:
                    self.chunks.insert(index, new_chunk)
                    return
        self.chunks.append(new_chunk)


def decode_bext(data: bytes) -> BroadcastMetadata:
    if len(data) < BEXT_MIN_SIZE:
        raise CorruptChunk(f"bext chunk too short ({len(data)} bytes)")
    fixed = data[:BEXT_FIXED_SIZE].ljust(BEXT_FIXED_SIZE, b"\x00")
    (
        description,
        originator,
        originator_reference,
        origination_date,
        origination_time,
        time_low,
        time_high,
        version,
        umid,
        loudness_value,
        loudness_range,
        max_true_peak,
        max_momentary,
        max_short_term,
        _reserved,
    ) = BEXT_STRUCT.unpack(fixed)
    return BroadcastMetadata(
        description=_text(description),
        originator=_text(originator),
        originator_reference=_text(originator_reference),
        origination_date=_text(origination_date),
        origination_time=_text(origination_time),
        time_reference_low=time_low,
        time_reference_high=time_high,
        version=version,
        umid=umid.rstrip(b"\x00"),
        loudness_value=loudness_value,
        loudness_range=loudness_range,
        max_true_peak_level=max_true_peak,
        max_momentary_loudness=max_momentary,
        max_short_term_loudness=max_short_term,
        coding_history=_text(data[BEXT_FIXED_SIZE:]),
    )


def encode_bext(bwf: BroadcastMetadata) -> bytes:
    fixed = BEXT_STRUCT.pack(
        _fit(bwf.description, 256),
        _fit(bwf.originator, 32),
        _fit(bwf.originator_reference, 32),
        _fit(bwf.origination_date, 10),
        _fit(bwf.origination_time, 8),
        bwf.time_reference_low & 0xFFFFFFFF,
        bwf.time_reference_high & 0xFFFFFFFF,
        bwf.version,
        bwf.umid[:64],
        bwf.loudness_value,
        bwf.loudness_range,
        bwf.max_true_peak_level,
        bwf.max_momentary_loudness,
        bwf.max_short_term_loudness,
        b"",
    )
    return fixed + bwf.coding_history.encode("utf-8")


def _text(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace").strip()


def _fit(value: str, width: int) -> bytes:
    encoded = (value or "").encode("utf-8")
    if len(encoded) <= width:
        return encoded
    # Cut on a character boundary so the slot stays valid UTF-8.
    return encoded[:width].decode("utf-8", errors="ignore").encode("utf-8")
