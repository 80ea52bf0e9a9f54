"""
Pydantic models shared by the builder, the store and the restorer.

A capsule is identified by its path and ordered by modification time.
Archive entries and displacement records only live for the duration
of a single build or restore.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional

from pydantic import BaseModel, Field


class CapsuleError(Exception):
    """Base class for every error raised by nvim-time-machine."""


class Capsule(BaseModel):
    """One capsule archive on disk.

    Attributes:
        path: Absolute path of the archive file.
        created_at: Timestamp embedded in the filename, if it parses.
        modified_at: Filesystem modification time (the ordering key).
        size: Archive size in bytes.
    """

    path: Path
    created_at: Optional[datetime] = None
    modified_at: datetime
    size: int = 0

    @property
    def name(self) -> str:
        return self.path.name


class ArchiveEntry(BaseModel):
    """A single member of a capsule, with its sanitized relative path."""

    path: PurePosixPath
    is_dir: bool = False
    size: int = 0
    mode: Optional[int] = None
    raw_name: str = ""
    index: int = 0


class DisplacementMode(str, Enum):
    """What happened to a live directory before a restore."""

    RENAMED = "renamed"
    DELETED = "deleted"


class DisplacementRecord(BaseModel):
    """Outcome of moving one pre-existing target out of the way."""

    original: Path
    mode: DisplacementMode
    moved_to: Optional[Path] = None


class BuildResult(BaseModel):
    """Summary of a finished capsule build."""

    capsule: Capsule
    file_count: int = 0
    dir_count: int = 0
    total_size: int = 0


class RestoreResult(BaseModel):
    """Summary of a finished restore."""

    capsule: Path
    root: Path
    displaced: list[DisplacementRecord] = Field(default_factory=list)
    entry_count: int = 0
    file_count: int = 0
    dir_count: int = 0
