from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .backup import BACKUP_SUFFIX

OrganizeField = Literal["show", "scene", "category", "subcategory", "take"]


class LibrarySettings(BaseModel):
    roots: List[Path] = Field(default_factory=list)
    include_extensions: List[str] = Field(default_factory=lambda: [".wav"])
    exclude_patterns: List[str] = Field(default_factory=list)

    @field_validator("roots", mode="before")
    @classmethod
    def _expand_roots(cls, values: List[str]) -> List[Path]:
        return [Path(v).expanduser().resolve() for v in values or []]


class WriterSettings(BaseModel):
    keep_backups: bool = False
    backup_suffix: str = BACKUP_SUFFIX


class BatchSettings(BaseModel):
    worker_concurrency: int = Field(default=4, ge=1)


class MirrorLevel(BaseModel):
    field: OrganizeField
    order: int = 0


class MirrorConfiguration(BaseModel):
    destination_root: Path
    organize_levels: List[MirrorLevel] = Field(default_factory=list)
    selected_paths: Optional[List[Path]] = None
    # overwrite/rename are reserved; only skip is implemented.
    conflict_action: Literal["skip"] = "skip"

    @field_validator("destination_root", mode="before")
    @classmethod
    def _expand_destination(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()

    @field_validator("selected_paths", mode="before")
    @classmethod
    def _expand_selected(cls, values: Optional[List[str | Path]]) -> Optional[List[Path]]:
        if values is None:
            return None
        return [Path(v).expanduser().resolve() for v in values]

    def sorted_levels(self) -> List[MirrorLevel]:
        return sorted(self.organize_levels, key=lambda level: level.order)


class MirrorSettings(BaseModel):
    destination_root: Optional[Path] = None
    organize_levels: List[MirrorLevel] = Field(default_factory=list)

    @field_validator("destination_root", mode="before")
    @classmethod
    def _expand_destination(cls, value: Optional[str | Path]) -> Optional[Path]:
        if value is None:
            return None
        return Path(value).expanduser().resolve()


class Settings(BaseModel):
    library: LibrarySettings = LibrarySettings()
    writer: WriterSettings = WriterSettings()
    batch: BatchSettings = BatchSettings()
    mirror: MirrorSettings = MirrorSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Optional[Path]:
    if explicit_path:
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    return None
