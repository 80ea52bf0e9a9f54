"""
Capsule store — the directory that holds every capsule.

Listing is ordered by modification time, oldest first, with the file
name as a tie-breaker so repeated listings come back identical.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import CAPSULE_PREFIX, CAPSULE_SUFFIX, TIMESTAMP_FORMAT
from .models import Capsule

logger = logging.getLogger("nvim_time_machine.store")


def capsule_name(when: datetime) -> str:
    """Filename for a capsule created at ``when``."""
    return f"{CAPSULE_PREFIX}{when.strftime(TIMESTAMP_FORMAT)}{CAPSULE_SUFFIX}"


def parse_capsule_timestamp(filename: str) -> Optional[datetime]:
    """Recover the creation time embedded in a capsule filename.

    Returns:
        datetime or None: None when the name does not follow the pattern.
    """
    if not (filename.startswith(CAPSULE_PREFIX) and filename.endswith(CAPSULE_SUFFIX)):
        return None
    stamp = filename[len(CAPSULE_PREFIX):-len(CAPSULE_SUFFIX)]
    try:
        return datetime.strptime(stamp, TIMESTAMP_FORMAT)
    except ValueError:
        return None


class CapsuleStore:
    """Lists and resolves capsules in a single directory.

    Args:
        capsule_dir: Directory holding the capsule archives.
    """

    def __init__(self, capsule_dir: Path) -> None:
        self.capsule_dir = Path(capsule_dir)
        self._last: list[Capsule] = []

    def list(self) -> list[Capsule]:
        """Return every capsule, oldest modification time first.

        The directory is created when missing; that simply means there
        are no capsules yet.
        """
        self.capsule_dir.mkdir(parents=True, exist_ok=True)

        found: list[tuple[int, str, Capsule]] = []
        for path in self.capsule_dir.iterdir():
            if path.suffix != CAPSULE_SUFFIX or not path.is_file():
                continue
            st = path.stat()
            capsule = Capsule(
                path=path,
                created_at=parse_capsule_timestamp(path.name),
                modified_at=datetime.fromtimestamp(st.st_mtime),
                size=st.st_size,
            )
            found.append((st.st_mtime_ns, path.name, capsule))

        found.sort(key=lambda item: (item[0], item[1]))
        self._last = [capsule for _, _, capsule in found]
        logger.debug("Found %d capsule(s) in %s", len(self._last), self.capsule_dir)
        return list(self._last)

    def resolve(self, index: int) -> Capsule:
        """Return the capsule at a 0-based position of the latest listing.

        Raises:
            IndexError: When ``index`` is outside the latest listing.
        """
        if not 0 <= index < len(self._last):
            raise IndexError(
                f"Capsule index {index} out of range (0..{len(self._last) - 1})"
            )
        return self._last[index]
