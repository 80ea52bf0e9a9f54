"""
Capsule restorer — put a capsule back onto disk.

A restore runs in three steps:

1. Open the capsule, sanitize every entry name and decompress every
   member once. Nothing on disk has been touched yet, so a corrupt or
   hostile capsule costs nothing.
2. Move each live target directory out of the way, either by renaming
   it to ``<name><YYYYMMDDHHMMSS>`` next to itself or by deleting it.
   Targets are handled one at a time; a failure stops the restore and
   leaves earlier targets displaced.
3. Extract entries in archive order below the common root.

There is no rollback. A renamed sibling is the manual recovery path.
"""

from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import TIMESTAMP_FORMAT
from .codec import CapsuleReader, UnsafeEntryError
from .context import SourceSet
from .models import (
    ArchiveEntry,
    Capsule,
    DisplacementMode,
    DisplacementRecord,
    RestoreResult,
)
from .progress import NullProgress, ProgressSink
from .prompts import SelectionProvider
from .store import CapsuleStore

logger = logging.getLogger("nvim_time_machine.restorer")

SELECT_PROMPT = "Select a capsule to restore"
RENAME_PROMPT = "Backup existing Neovim directories (rename with timestamp)?"


def displace_directories(
    targets: SourceSet,
    rename: bool,
    now: Optional[datetime] = None,
) -> list[DisplacementRecord]:
    """Move every existing target directory out of the way.

    Args:
        targets: Directories about to be restored.
        rename: Rename to a timestamped sibling when True, delete when False.
        now: Timestamp for renamed siblings. Defaults to local now.

    Returns:
        list[DisplacementRecord]: One record per directory that existed.
    """
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    records: list[DisplacementRecord] = []

    for directory in targets.directories:
        if not os.path.lexists(directory):
            continue
        if rename:
            moved_to = directory.with_name(f"{directory.name}{stamp}")
            os.rename(directory, moved_to)
            logger.info("Renamed %s -> %s", directory, moved_to)
            records.append(DisplacementRecord(
                original=directory, mode=DisplacementMode.RENAMED, moved_to=moved_to,
            ))
        else:
            if directory.is_symlink() or not directory.is_dir():
                directory.unlink()
            else:
                shutil.rmtree(directory)
            logger.info("Deleted %s", directory)
            records.append(DisplacementRecord(
                original=directory, mode=DisplacementMode.DELETED,
            ))

    return records


def _destination(root: Path, entry: ArchiveEntry) -> Path:
    """Join an entry onto the root, refusing anything that resolves outside it."""
    dest = root.joinpath(*entry.path.parts)
    resolved_root = root.resolve()
    resolved = dest.resolve()
    if resolved != resolved_root and resolved_root not in resolved.parents:
        raise UnsafeEntryError(f"Entry {entry.raw_name!r} resolves outside {root}")
    return dest


def extract_capsule(
    reader: CapsuleReader,
    root: Path,
    progress: Optional[ProgressSink] = None,
) -> tuple[int, int]:
    """Write every entry of an open capsule below ``root``.

    Files overwrite whatever is already at their path.

    Returns:
        tuple[int, int]: Files and directories written.
    """
    progress = progress or NullProgress()
    progress.start(len(reader))
    files = dirs = 0

    for entry in reader:
        dest = _destination(root, entry)
        if entry.is_dir:
            dest.mkdir(parents=True, exist_ok=True)
            dirs += 1
        else:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with open(dest, "wb") as fh:
                reader.copy_to(entry, fh)
            if entry.mode:
                os.chmod(dest, entry.mode & 0o777)
            files += 1
        progress.advance(1)

    progress.finish("Restoration complete!")
    return files, dirs


def restore_capsule(
    capsule_path: Path,
    targets: SourceSet,
    rename: bool,
    progress: Optional[ProgressSink] = None,
    now: Optional[datetime] = None,
) -> RestoreResult:
    """Displace the live targets and extract a capsule in their place.

    Args:
        capsule_path: Capsule archive to restore.
        targets: Directories to replace; entries land below their root.
        rename: Keep displaced directories as timestamped siblings.
        progress: Sink advanced once per extracted entry.
        now: Timestamp for renamed siblings.

    Returns:
        RestoreResult: What was displaced and what was written.
    """
    capsule_path = Path(capsule_path)
    root = targets.root

    with CapsuleReader(capsule_path) as reader:
        displaced = displace_directories(targets, rename=rename, now=now)
        root.mkdir(parents=True, exist_ok=True)
        files, dirs = extract_capsule(reader, root, progress=progress)
        entry_count = len(reader)

    logger.info(
        "Restored %s into %s (%d files, %d dirs, %d displaced)",
        capsule_path, root, files, dirs, len(displaced),
    )
    return RestoreResult(
        capsule=capsule_path,
        root=root,
        displaced=displaced,
        entry_count=entry_count,
        file_count=files,
        dir_count=dirs,
    )


class CapsuleRestorer:
    """Interactive restore: pick a capsule, pick a displacement mode, restore.

    Args:
        targets: Directories the capsule replaces.
        store: Where the capsules live.
        selector: Prompts for the capsule and the rename choice.
        progress: Sink for extraction progress.
    """

    def __init__(
        self,
        targets: SourceSet,
        store: CapsuleStore,
        selector: SelectionProvider,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        self.targets = targets
        self.store = store
        self.selector = selector
        self.progress = progress

    def select(self) -> Optional[Capsule]:
        """Ask which capsule to restore. None when there are none."""
        capsules = self.store.list()
        if not capsules:
            return None
        index = self.selector.choose_index(SELECT_PROMPT, [c.name for c in capsules])
        return self.store.resolve(index)

    def run(self, now: Optional[datetime] = None) -> Optional[RestoreResult]:
        capsule = self.select()
        if capsule is None:
            logger.info("No capsules to restore")
            return None
        rename = self.selector.confirm(RENAME_PROMPT, default=True)
        return restore_capsule(
            capsule.path, self.targets, rename=rename, progress=self.progress, now=now,
        )
