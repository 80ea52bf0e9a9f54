"""
Zip codec for capsules.

Entries are stored deflate-compressed under forward-slash paths relative
to the capsule root. Writing goes to a ``.partial`` sibling that is only
renamed onto the final name once the central directory has been written,
so a crashed build never leaves something that looks like a capsule.

Reading checks everything up front: member names are sanitized (leading
separators and drive markers stripped, ``..`` segments rejected) and
every member is decompressed once against its CRC.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import stat
import zipfile
import zlib
from pathlib import Path, PurePath, PurePosixPath
from typing import IO, Iterator, Optional

from . import PARTIAL_SUFFIX
from .models import ArchiveEntry, CapsuleError

logger = logging.getLogger("nvim_time_machine.codec")

_DRIVE_RE = re.compile(r"^[A-Za-z]:")

# What zipfile lets escape when member data is damaged
_CORRUPT_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError)


class CapsuleFormatError(CapsuleError):
    """Raised when a capsule is not a readable zip archive."""


class UnsafeEntryError(CapsuleError):
    """Raised when an entry path would land outside the capsule root."""


def entry_name_for(relative: PurePath, is_dir: bool = False) -> str:
    """Turn a root-relative path into a zip member name.

    Args:
        relative: Path relative to the capsule root.
        is_dir: Append the trailing slash that marks a directory entry.

    Returns:
        str: Forward-slash member name.

    Raises:
        UnsafeEntryError: If the path is absolute, empty or climbs upward.
    """
    if relative.is_absolute() or relative.anchor:
        raise UnsafeEntryError(f"Refusing absolute entry path: {relative}")
    parts = [p for p in relative.parts if p not in ("", ".")]
    if not parts:
        raise UnsafeEntryError("Refusing empty entry path")
    if ".." in parts:
        raise UnsafeEntryError(f"Refusing entry path with '..': {relative}")
    name = "/".join(parts)
    return name + "/" if is_dir else name


def sanitize_entry_name(raw: str) -> PurePosixPath:
    """Normalize a member name read from an archive.

    Backslashes become forward slashes, leading separators and drive
    letters are dropped, and ``.`` segments disappear.

    Raises:
        UnsafeEntryError: On a ``..`` segment or a name with nothing left.
    """
    name = raw.replace("\\", "/")
    name = _DRIVE_RE.sub("", name)
    parts = [p for p in name.split("/") if p not in ("", ".")]
    if ".." in parts:
        raise UnsafeEntryError(f"Entry escapes the capsule root: {raw!r}")
    if not parts:
        raise UnsafeEntryError(f"Entry has an empty path: {raw!r}")
    return PurePosixPath(*parts)


class CapsuleWriter:
    """Write a capsule archive atomically.

    Use as a context manager. Leaving the block normally finalizes the
    zip and moves it into place; leaving it with an exception discards
    the partial file.

    Args:
        path: Final capsule path.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.partial_path = self.path.with_name(self.path.name + PARTIAL_SUFFIX)
        self._zip: Optional[zipfile.ZipFile] = None
        self.entry_count = 0

    def __enter__(self) -> "CapsuleWriter":
        self._zip = zipfile.ZipFile(
            self.partial_path,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            strict_timestamps=False,
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.finalize()
        else:
            self.abort()

    def _require_open(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise CapsuleError(f"Capsule writer is not open: {self.path}")
        return self._zip

    def add_file(self, relative: PurePath, source: Path) -> None:
        """Stream a file from disk into the archive, keeping mode and mtime."""
        self._require_open().write(source, arcname=entry_name_for(relative))
        self.entry_count += 1

    def add_directory(self, relative: PurePath, source: Optional[Path] = None) -> None:
        """Add a directory marker entry."""
        zf = self._require_open()
        name = entry_name_for(relative, is_dir=True)
        if source is not None:
            zf.write(source, arcname=name)
        else:
            info = zipfile.ZipInfo(name)
            info.external_attr = (stat.S_IFDIR | 0o755) << 16 | 0x10
            zf.writestr(info, b"")
        self.entry_count += 1

    def add_bytes(self, relative: PurePath, data: bytes, mode: int = 0o644) -> None:
        """Add a file entry from an in-memory payload."""
        info = zipfile.ZipInfo(entry_name_for(relative))
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = (stat.S_IFREG | mode) << 16
        self._require_open().writestr(info, data)
        self.entry_count += 1

    def finalize(self) -> Path:
        """Write the central directory and move the archive into place."""
        zf = self._require_open()
        self._zip = None
        try:
            zf.close()
        except BaseException:
            self._discard()
            raise
        os.replace(self.partial_path, self.path)
        logger.debug("Finalized %s (%d entries)", self.path, self.entry_count)
        return self.path

    def abort(self) -> None:
        """Close and delete the partial archive."""
        zf, self._zip = self._zip, None
        if zf is not None:
            try:
                zf.close()
            except (OSError, ValueError) as exc:
                logger.debug("Ignoring close error on aborted capsule: %s", exc)
        self._discard()

    def _discard(self) -> None:
        try:
            self.partial_path.unlink()
        except FileNotFoundError:
            pass
        logger.debug("Discarded partial capsule %s", self.partial_path)


class CapsuleReader:
    """Read a capsule archive entry by entry, in container order.

    Opening reads the central directory, sanitizes every member name
    and decompresses every member against its CRC, so a corrupt archive
    or an unsafe entry is reported before the caller touches the
    filesystem.

    Args:
        path: Capsule archive to open.

    Raises:
        CapsuleFormatError: If the file is not a valid zip archive or any
            member fails to decompress.
        UnsafeEntryError: If any member name escapes the root.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        try:
            self._zip = zipfile.ZipFile(self.path, "r")
        except zipfile.BadZipFile as exc:
            raise CapsuleFormatError(f"Corrupt capsule {self.path}: {exc}") from exc
        try:
            self._infos = self._zip.infolist()
            self._entries = [
                self._to_entry(index, info) for index, info in enumerate(self._infos)
            ]
        except BaseException:
            self._zip.close()
            raise
        self._verify()

    def _verify(self) -> None:
        """Decompress every member and check its CRC, closing on failure."""
        try:
            bad = self._zip.testzip()
        except _CORRUPT_ERRORS as exc:
            self._zip.close()
            raise CapsuleFormatError(f"Corrupt capsule {self.path}: {exc}") from exc
        except BaseException:
            self._zip.close()
            raise
        if bad is not None:
            self._zip.close()
            raise CapsuleFormatError(f"Corrupt capsule {self.path}: bad member {bad!r}")

    @staticmethod
    def _to_entry(index: int, info: zipfile.ZipInfo) -> ArchiveEntry:
        mode = (info.external_attr >> 16) & 0o7777
        return ArchiveEntry(
            path=sanitize_entry_name(info.filename),
            is_dir=info.is_dir(),
            size=info.file_size,
            mode=mode or None,
            raw_name=info.filename,
            index=index,
        )

    def __enter__(self) -> "CapsuleReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._zip.close()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(self._entries)

    def open(self, entry: ArchiveEntry) -> IO[bytes]:
        """Open a file entry's decompressed byte stream."""
        try:
            return self._zip.open(self._infos[entry.index])
        except _CORRUPT_ERRORS as exc:
            raise CapsuleFormatError(f"Corrupt entry {entry.raw_name!r}: {exc}") from exc

    def read_bytes(self, entry: ArchiveEntry) -> bytes:
        with self.open(entry) as fh:
            try:
                return fh.read()
            except _CORRUPT_ERRORS as exc:
                raise CapsuleFormatError(
                    f"Corrupt entry {entry.raw_name!r}: {exc}"
                ) from exc

    def copy_to(self, entry: ArchiveEntry, dest: IO[bytes]) -> None:
        """Stream a file entry into an open binary file."""
        with self.open(entry) as fh:
            try:
                shutil.copyfileobj(fh, dest)
            except _CORRUPT_ERRORS as exc:
                raise CapsuleFormatError(
                    f"Corrupt entry {entry.raw_name!r}: {exc}"
                ) from exc

