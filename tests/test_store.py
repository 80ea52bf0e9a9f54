"""Tests for the capsule store."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

from nvim_time_machine.store import CapsuleStore, capsule_name, parse_capsule_timestamp


def _touch(path: Path, mtime: float) -> Path:
    path.write_bytes(b"PK")
    os.utime(path, (mtime, mtime))
    return path


class TestCapsuleNames:
    """Tests for the timestamped filename scheme."""

    def test_name_format(self) -> None:
        when = datetime(2024, 1, 1, 12, 0, 0)
        assert capsule_name(when) == "nvim_backup_20240101120000.zip"

    def test_parse_roundtrip(self) -> None:
        assert parse_capsule_timestamp("nvim_backup_20240101120000.zip") == datetime(
            2024, 1, 1, 12, 0, 0
        )

    def test_parse_foreign_name(self) -> None:
        assert parse_capsule_timestamp("holiday.zip") is None
        assert parse_capsule_timestamp("nvim_backup_notadate.zip") is None


class TestList:
    """Tests for listing capsules."""

    def test_missing_dir_is_empty(self, tmp_path: Path) -> None:
        """A store directory that does not exist yet lists nothing."""
        store = CapsuleStore(tmp_path / "capsules")
        assert store.list() == []
        assert (tmp_path / "capsules").is_dir()

    def test_empty_dir(self, tmp_path: Path) -> None:
        assert CapsuleStore(tmp_path).list() == []

    def test_sorted_by_mtime_not_name(self, tmp_path: Path) -> None:
        """Oldest modification time comes first, whatever the name says."""
        _touch(tmp_path / "nvim_backup_20250101000000.zip", 1_000)
        _touch(tmp_path / "nvim_backup_20200101000000.zip", 3_000)
        _touch(tmp_path / "manual.zip", 2_000)

        names = [c.name for c in CapsuleStore(tmp_path).list()]

        assert names == [
            "nvim_backup_20250101000000.zip",
            "manual.zip",
            "nvim_backup_20200101000000.zip",
        ]

    def test_ties_broken_by_name(self, tmp_path: Path) -> None:
        for name in ("b.zip", "c.zip", "a.zip"):
            _touch(tmp_path / name, 5_000)

        store = CapsuleStore(tmp_path)
        first = [c.name for c in store.list()]
        second = [c.name for c in store.list()]

        assert first == second == ["a.zip", "b.zip", "c.zip"]

    def test_ignores_other_files(self, tmp_path: Path) -> None:
        """Only finished .zip files count; partials and strays are skipped."""
        _touch(tmp_path / "nvim_backup_20240101120000.zip", 1_000)
        _touch(tmp_path / "nvim_backup_20240101120001.zip.partial", 2_000)
        _touch(tmp_path / "notes.txt", 3_000)
        (tmp_path / "folder.zip").mkdir()

        names = [c.name for c in CapsuleStore(tmp_path).list()]

        assert names == ["nvim_backup_20240101120000.zip"]

    def test_capsule_metadata(self, tmp_path: Path) -> None:
        _touch(tmp_path / "nvim_backup_20240101120000.zip", 1_000)
        (capsule,) = CapsuleStore(tmp_path).list()

        assert capsule.path == tmp_path / "nvim_backup_20240101120000.zip"
        assert capsule.created_at == datetime(2024, 1, 1, 12, 0, 0)
        assert capsule.modified_at == datetime.fromtimestamp(1_000)
        assert capsule.size == 2


class TestResolve:
    """Tests for index resolution."""

    def test_resolve_follows_listing(self, tmp_path: Path) -> None:
        _touch(tmp_path / "old.zip", 1_000)
        _touch(tmp_path / "new.zip", 2_000)
        store = CapsuleStore(tmp_path)
        store.list()

        assert store.resolve(0).name == "old.zip"
        assert store.resolve(1).name == "new.zip"

    def test_out_of_range(self, tmp_path: Path) -> None:
        _touch(tmp_path / "only.zip", 1_000)
        store = CapsuleStore(tmp_path)
        store.list()

        with pytest.raises(IndexError):
            store.resolve(1)
        with pytest.raises(IndexError):
            store.resolve(-1)

    def test_resolve_before_list(self, tmp_path: Path) -> None:
        with pytest.raises(IndexError):
            CapsuleStore(tmp_path).resolve(0)
