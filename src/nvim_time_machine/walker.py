"""
Tree walking for capsule builds.

Walks are lazy and top-down: a directory is reported before its files,
and its files before its subdirectories. Names are sorted inside each
directory so two walks of an unchanged tree agree. Anything that errors
while walking (unreadable directories, broken symlinks, files we cannot
open) is skipped without complaint.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, NamedTuple

logger = logging.getLogger("nvim_time_machine.walker")


class TreeEntry(NamedTuple):
    """A directory or regular file found by the walker."""

    path: Path
    is_dir: bool


def _on_walk_error(exc: OSError) -> None:
    logger.debug("Skipping unreadable entry: %s", exc)


def _is_readable_file(path: str) -> bool:
    # isfile() follows symlinks, so broken links come back False
    return os.path.isfile(path) and os.access(path, os.R_OK)


def iter_tree(directory: Path) -> Iterator[TreeEntry]:
    """Yield ``directory`` itself, then every directory and readable file below it.

    Args:
        directory: Directory to walk. A missing directory yields nothing.

    Yields:
        TreeEntry: Absolute paths, directories flagged with ``is_dir``.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug("Source directory not found, skipping: %s", directory)
        return

    for dirpath, dirnames, filenames in os.walk(directory, onerror=_on_walk_error):
        dirnames.sort()
        yield TreeEntry(Path(dirpath), True)
        for name in sorted(filenames):
            full = os.path.join(dirpath, name)
            if _is_readable_file(full):
                yield TreeEntry(Path(full), False)
            else:
                logger.debug("Skipping non-regular or unreadable file: %s", full)


def iter_files(directory: Path) -> Iterator[Path]:
    """Yield every readable regular file below ``directory``."""
    for entry in iter_tree(directory):
        if not entry.is_dir:
            yield entry.path


def count_files(directories) -> int:
    """Count the files a build would pack, with a fresh walk of each directory."""
    return sum(1 for directory in directories for _ in iter_files(directory))
