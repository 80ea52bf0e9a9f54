"""
Root resolution — where the home directory is and what lives under it.

The home directory is looked up exactly once, at process start, and
carried around as a ``RootContext``. Everything else derives its paths
from that value so tests can point the whole tool at a temp directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import CAPSULE_DIRNAME, SOURCE_DIRS
from .models import CapsuleError


class HomeNotFoundError(CapsuleError):
    """Raised when the home directory cannot be determined."""


class SourceSet(BaseModel):
    """Ordered, fixed list of directories captured and restored together.

    Archive entries are stored relative to ``root``, the deepest
    directory that contains every member.
    """

    model_config = ConfigDict(frozen=True)

    directories: tuple[Path, ...] = Field(min_length=1)

    @field_validator("directories")
    @classmethod
    def must_be_absolute(cls, value: tuple[Path, ...]) -> tuple[Path, ...]:
        for directory in value:
            if not directory.is_absolute():
                raise ValueError(f"Source directory must be absolute: {directory}")
        return value

    @property
    def root(self) -> Path:
        return Path(os.path.commonpath([str(d) for d in self.directories]))


class RootContext(BaseModel):
    """The resolved home directory and the layout derived from it."""

    model_config = ConfigDict(frozen=True)

    home: Path

    @classmethod
    def discover(cls, home: Optional[Path] = None) -> "RootContext":
        """Resolve the home directory once.

        Args:
            home: Explicit override (the ``--home`` option). When omitted
                the current user's home directory is used.

        Returns:
            RootContext: Context rooted at the resolved directory.

        Raises:
            HomeNotFoundError: If no home directory can be determined.
        """
        if home is None:
            try:
                home = Path.home()
            except (RuntimeError, KeyError) as exc:
                raise HomeNotFoundError(f"Could not find home directory: {exc}") from exc
        home = Path(home).expanduser()
        if not str(home) or not home.is_absolute():
            raise HomeNotFoundError(f"Home directory is not an absolute path: {home!r}")
        return cls(home=home)

    @property
    def sources(self) -> SourceSet:
        return SourceSet(directories=tuple(self.home / d for d in SOURCE_DIRS))

    @property
    def capsule_dir(self) -> Path:
        return self.home / CAPSULE_DIRNAME
