from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

ConflictAction = Literal["skip", "overwrite", "rename"]


@dataclass(slots=True)
class FileInfo:
    file_name: str
    file_size: int
    last_modified: datetime
    sample_rate: int = 0
    bit_depth: int = 0
    channels: int = 0
    duration: float = 0.0
    format_tag: int = 0

    @property
    def format(self) -> str:
        return "PCM" if self.format_tag == 1 else "Other"


@dataclass(slots=True)
class BroadcastMetadata:
    """Fields of the broadcast-extension (bext) chunk."""

    description: str = ""
    originator: str = ""
    originator_reference: str = ""
    origination_date: str = ""
    origination_time: str = ""
    time_reference_low: int = 0
    time_reference_high: int = 0
    version: int = 0
    umid: bytes = b""
    loudness_value: int = 0
    loudness_range: int = 0
    max_true_peak_level: int = 0
    max_momentary_loudness: int = 0
    max_short_term_loudness: int = 0
    coding_history: str = ""

    @property
    def time_reference(self) -> int:
        return (self.time_reference_high << 32) | self.time_reference_low

    def copy(self) -> "BroadcastMetadata":
        return replace(self)


@dataclass(slots=True)
class StructuredMetadata:
    """Known iXML fields plus every other element under the root, untouched.

    A known field is ``None`` when the element is absent from the document so
    that write-back does not invent elements the source never carried.
    """

    project: Optional[str] = None
    scene: Optional[str] = None
    take: Optional[str] = None
    slate: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    note: Optional[str] = None
    circled: Optional[str] = None
    wild_track: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    root_tag: str = "BWFXML"

    def copy(self) -> "StructuredMetadata":
        return replace(self, extra=_deep_copy(self.extra))


@dataclass(slots=True)
class WavRecord:
    """Canonical, precedence-resolved view of one WAV file's metadata."""

    path: Path
    show: str = ""
    scene: str = ""
    take: str = ""
    slate: str = ""
    category: str = ""
    subcategory: str = ""
    note: str = ""
    wildtrack: str = "false"
    circled: str = "false"
    bwf: BroadcastMetadata = field(default_factory=BroadcastMetadata)
    ixml: Optional[StructuredMetadata] = None
    file_info: Optional[FileInfo] = None

    @property
    def filename(self) -> str:
        return self.path.name

    def to_record(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "path": str(self.path),
            "filename": self.filename,
            "show": self.show,
            "scene": self.scene,
            "take": self.take,
            "slate": self.slate,
            "category": self.category,
            "subcategory": self.subcategory,
            "note": self.note,
            "wildtrack": self.wildtrack,
            "circled": self.circled,
            "bwf": {
                "description": self.bwf.description,
                "originator": self.bwf.originator,
                "originator_reference": self.bwf.originator_reference,
                "origination_date": self.bwf.origination_date,
                "origination_time": self.bwf.origination_time,
                "time_reference": self.bwf.time_reference,
                "umid": self.bwf.umid.hex(),
                "coding_history": self.bwf.coding_history,
            },
            "ixml": None,
            "file_info": None,
        }
        if self.ixml is not None:
            payload["ixml"] = {
                "project": self.ixml.project,
                "scene": self.ixml.scene,
                "take": self.ixml.take,
                "slate": self.ixml.slate,
                "category": self.ixml.category,
                "subcategory": self.ixml.subcategory,
                "note": self.ixml.note,
                "circled": self.ixml.circled,
                "wild_track": self.ixml.wild_track,
                "extra": self.ixml.extra,
            }
        if self.file_info is not None:
            info = self.file_info
            payload["file_info"] = {
                "file_name": info.file_name,
                "file_size": info.file_size,
                "last_modified": info.last_modified.isoformat(),
                "sample_rate": info.sample_rate,
                "bit_depth": info.bit_depth,
                "channels": info.channels,
                "duration": round(info.duration, 6),
                "format": info.format,
            }
        return payload


@dataclass(slots=True)
class FileProcessingResult:
    path: Path
    record: Optional[WavRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class MirrorConflict:
    source_path: Path
    destination_path: Path
    action: ConflictAction = "skip"


@dataclass(frozen=True, slots=True)
class MirrorError:
    path: str
    error: str


@dataclass(slots=True)
class MirrorResult:
    copied_count: int = 0
    errors: List[MirrorError] = field(default_factory=list)
    conflicts: List[MirrorConflict] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class MetadataError(Exception):
    """Base class for failures surfaced by the metadata services."""


class UnsupportedFormat(MetadataError):
    """The path does not name a WAV container."""


class NotFound(MetadataError):
    """The source path does not exist."""


class CorruptChunk(MetadataError):
    """A single metadata chunk could not be decoded. Never leaves the resolver."""


class MetadataIOError(MetadataError):
    """Reading, writing or copying bytes failed."""


class SerializationError(MetadataError):
    """The structured-metadata tree could not be serialized for write-back."""


def _deep_copy(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _deep_copy(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_deep_copy(item) for item in value]
    return value
