"""
Capsule builder — pack the source directories into one archive.

Every path is stored relative to the deepest directory shared by all
sources (the home directory for the stock Neovim layout), so a restore
rebuilds the same layout under that root.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path, PurePath
from typing import Optional

from .codec import CapsuleWriter
from .context import SourceSet
from .models import BuildResult, Capsule
from .progress import NullProgress, ProgressSink
from .store import capsule_name, parse_capsule_timestamp
from .walker import count_files, iter_tree

logger = logging.getLogger("nvim_time_machine.builder")


def build_capsule(
    sources: SourceSet,
    capsule_dir: Path,
    progress: Optional[ProgressSink] = None,
    now: Optional[datetime] = None,
) -> BuildResult:
    """Create a new capsule from the source directories.

    Walks the sources twice: once to size the progress bar, once to
    pack. Directories get their own entries so empty ones survive a
    round trip. Missing sources are skipped.

    Args:
        sources: Directories to capture.
        capsule_dir: Where to write the capsule (created if missing).
        progress: Sink advanced once per packed file.
        now: Creation time for the filename. Defaults to local now.

    Returns:
        BuildResult: The new capsule plus file and directory counts.
    """
    progress = progress or NullProgress()
    when = (now or datetime.now()).replace(microsecond=0)

    capsule_dir = Path(capsule_dir)
    capsule_dir.mkdir(parents=True, exist_ok=True)
    capsule_path = capsule_dir / capsule_name(when)
    if capsule_path.exists():
        logger.warning("Overwriting capsule from the same second: %s", capsule_path)

    root = sources.root
    total = count_files(sources.directories)
    progress.start(total)

    file_count = 0
    dir_count = 0
    total_size = 0

    with CapsuleWriter(capsule_path) as writer:
        for directory in sources.directories:
            for entry in iter_tree(directory):
                relative = PurePath(entry.path.relative_to(root))
                if entry.is_dir:
                    if relative == PurePath("."):
                        continue
                    writer.add_directory(relative, entry.path)
                    dir_count += 1
                    continue
                writer.add_file(relative, entry.path)
                total_size += entry.path.stat().st_size
                file_count += 1
                progress.advance(1)

    st = capsule_path.stat()
    capsule = Capsule(
        path=capsule_path,
        created_at=parse_capsule_timestamp(capsule_path.name),
        modified_at=datetime.fromtimestamp(st.st_mtime),
        size=st.st_size,
    )
    progress.finish("Capsule created!")

    logger.info(
        "Capsule created: %s (%d files, %d dirs, %d bytes -> %d bytes compressed)",
        capsule_path, file_count, dir_count, total_size, capsule.size,
    )
    return BuildResult(
        capsule=capsule,
        file_count=file_count,
        dir_count=dir_count,
        total_size=total_size,
    )
