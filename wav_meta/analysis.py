from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .models import FileProcessingResult

COVERAGE_FIELDS = ("show", "scene", "take", "slate", "category", "subcategory", "note")


@dataclass
class DuplicateGroup:
    scene_take: str
    files: List[str]


@dataclass
class MetadataAnalysis:
    total_files: int = 0
    processed_files: int = 0
    failed_files: int = 0
    field_coverage: Dict[str, float] = field(default_factory=dict)
    shows: set[str] = field(default_factory=set)
    scenes: set[str] = field(default_factory=set)
    takes: set[str] = field(default_factory=set)
    categories: set[str] = field(default_factory=set)
    has_ixml: int = 0
    has_bwf: int = 0
    average_file_size: float = 0.0
    duplicates: List[DuplicateGroup] = field(default_factory=list)

    def to_record(self) -> Dict[str, object]:
        return {
            "total_files": self.total_files,
            "processed_files": self.processed_files,
            "failed_files": self.failed_files,
            "field_coverage": dict(self.field_coverage),
            "shows": sorted(self.shows),
            "scenes": sorted(self.scenes),
            "takes": sorted(self.takes),
            "categories": sorted(self.categories),
            "has_ixml": self.has_ixml,
            "has_bwf": self.has_bwf,
            "average_file_size": self.average_file_size,
            "duplicates": [
                {"scene_take": group.scene_take, "files": group.files}
                for group in self.duplicates
            ],
        }


def analyze(results: Iterable[FileProcessingResult]) -> MetadataAnalysis:
    """Summarize field coverage and duplicate scene/take pairs over a bulk read."""
    report = MetadataAnalysis()
    filled: Dict[str, int] = defaultdict(int)
    by_scene_take: Dict[str, List[str]] = defaultdict(list)
    total_size = 0
    for result in results:
        report.total_files += 1
        record = result.record
        if record is None:
            report.failed_files += 1
            continue
        report.processed_files += 1
        for name in COVERAGE_FIELDS:
            if getattr(record, name).strip():
                filled[name] += 1
        if record.show:
            report.shows.add(record.show)
        if record.scene:
            report.scenes.add(record.scene)
        if record.take:
            report.takes.add(record.take)
        if record.category:
            report.categories.add(record.category)
        if record.ixml is not None:
            report.has_ixml += 1
        if _has_bext(record):
            report.has_bwf += 1
        if record.file_info is not None:
            total_size += record.file_info.file_size
        if record.scene and record.take:
            key = f"{record.show}|{record.scene}{record.slate}|{record.take}"
            by_scene_take[key].append(str(record.path))

    processed = report.processed_files
    report.field_coverage = {
        name: round(100.0 * filled[name] / processed, 1) if processed else 0.0
        for name in COVERAGE_FIELDS
    }
    report.average_file_size = total_size / processed if processed else 0.0
    report.duplicates = [
        DuplicateGroup(scene_take=key, files=files)
        for key, files in sorted(by_scene_take.items())
        if len(files) > 1
    ]
    return report


def _has_bext(record) -> bool:
    bwf = record.bwf
    return bool(bwf.description or bwf.originator or bwf.origination_date or bwf.coding_history)
