from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable, Optional

from ..models import WavRecord

RECORD_COLUMNS = ("show", "category", "subcategory", "scene", "slate", "take", "circled", "note")


@dataclass(frozen=True, slots=True)
class StatusLine:
    label: str
    status: str
    detail: Optional[str] = None

    def render(self) -> str:
        if self.detail:
            return f"{self.label}: {self.status} ({self.detail})"
        return f"{self.label}: {self.status}"


def ok(label: str, detail: Optional[str] = None) -> str:
    return StatusLine(label, "OK", detail).render()


def skipped(label: str, detail: Optional[str] = None) -> str:
    return StatusLine(label, "SKIPPED", detail).render()


def error(label: str, detail: Optional[str] = None) -> str:
    return StatusLine(label, "ERROR", detail).render()


def render_record(record: WavRecord) -> str:
    lines = [record.filename]
    for column in RECORD_COLUMNS:
        lines.append(f"  {column:<12} {getattr(record, column)}")
    if record.file_info is not None:
        info = record.file_info
        lines.append(
            f"  {'audio':<12} {info.sample_rate} Hz / {info.bit_depth} bit / "
            f"{info.channels} ch / {info.duration:.2f}s / {info.format}"
        )
    return "\n".join(lines)


def dump_json(payload: object) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


def print_lines(lines: Iterable[str]) -> None:
    for line in lines:
        print(line)
