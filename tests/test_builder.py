"""Tests for capsule creation."""

from __future__ import annotations

import zipfile
from datetime import datetime
from pathlib import Path

from nvim_time_machine.builder import build_capsule
from nvim_time_machine.context import RootContext, SourceSet
from nvim_time_machine.store import CapsuleStore


class TestBuildCapsule:
    """Tests for build_capsule."""

    def test_single_source_scenario(self, tmp_path: Path) -> None:
        """One directory with a.txt and b/c.txt packs into exactly three entries."""
        src = tmp_path / "src"
        (src / "b").mkdir(parents=True)
        (src / "a.txt").write_text("hi")
        (src / "b" / "c.txt").write_text("bye")

        result = build_capsule(SourceSet(directories=(src,)), tmp_path / "caps")

        with zipfile.ZipFile(result.capsule.path) as zf:
            assert zf.namelist() == ["a.txt", "b/", "b/c.txt"]
            assert zf.read("a.txt") == b"hi"
            assert zf.read("b/c.txt") == b"bye"
        assert result.file_count == 2
        assert result.dir_count == 1

    def test_paths_relative_to_home(self, ctx: RootContext) -> None:
        """Stock layout stores paths under the home directory, never absolute."""
        result = build_capsule(ctx.sources, ctx.capsule_dir)

        with zipfile.ZipFile(result.capsule.path) as zf:
            names = zf.namelist()

        assert ".config/nvim/init.lua" in names
        assert ".config/nvim/lua/settings.lua" in names
        assert ".local/share/nvim/shada/main.shada" in names
        assert ".cache/nvim/log" in names
        assert ".config/nvim/after/" in names
        assert not any(n.startswith("/") or ".." in n.split("/") for n in names)
        assert not any(str(ctx.home) in n for n in names)

    def test_timestamped_name(self, ctx: RootContext) -> None:
        result = build_capsule(
            ctx.sources, ctx.capsule_dir, now=datetime(2024, 1, 1, 12, 0, 0, 999)
        )
        assert result.capsule.name == "nvim_backup_20240101120000.zip"
        assert result.capsule.created_at == datetime(2024, 1, 1, 12, 0, 0)

    def test_creates_capsule_dir(self, ctx: RootContext) -> None:
        assert not ctx.capsule_dir.exists()
        build_capsule(ctx.sources, ctx.capsule_dir)
        assert ctx.capsule_dir.is_dir()

    def test_missing_sources_skipped(self, tmp_path: Path) -> None:
        """Sources that do not exist are left out rather than failing."""
        present = tmp_path / "home" / ".config" / "nvim"
        present.mkdir(parents=True)
        (present / "init.lua").write_text("-- hi")
        sources = SourceSet(directories=(
            tmp_path / "home" / ".local" / "share" / "nvim",
            present,
        ))

        result = build_capsule(sources, tmp_path / "caps")

        assert result.file_count == 1
        with zipfile.ZipFile(result.capsule.path) as zf:
            assert ".config/nvim/init.lua" in zf.namelist()

    def test_progress_events(self, ctx: RootContext, progress) -> None:
        """Progress is sized by the counting pass and advanced once per file."""
        result = build_capsule(ctx.sources, ctx.capsule_dir, progress=progress)

        assert progress.total == result.file_count == 5
        assert progress.advanced == result.file_count == 5
        assert progress.finished == ["Capsule created!"]

    def test_visible_to_store(self, ctx: RootContext) -> None:
        """A finished build shows up in listings with no partial left behind."""
        result = build_capsule(ctx.sources, ctx.capsule_dir)

        listed = CapsuleStore(ctx.capsule_dir).list()

        assert [c.path for c in listed] == [result.capsule.path]
        assert sorted(p.name for p in ctx.capsule_dir.iterdir()) == [result.capsule.name]

    def test_same_second_overwrites(self, ctx: RootContext) -> None:
        when = datetime(2024, 1, 1, 12, 0, 0)
        build_capsule(ctx.sources, ctx.capsule_dir, now=when)
        (ctx.home / ".cache" / "nvim" / "extra").write_text("new")
        second = build_capsule(ctx.sources, ctx.capsule_dir, now=when)

        assert len(CapsuleStore(ctx.capsule_dir).list()) == 1
        assert second.file_count == 6
