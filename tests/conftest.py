"""Shared test fixtures for nvim-time-machine."""

from __future__ import annotations

from pathlib import Path

import pytest

from nvim_time_machine.context import RootContext


class RecordingProgress:
    """Progress sink that remembers every event."""

    def __init__(self) -> None:
        self.total: int | None = None
        self.advanced = 0
        self.finished: list[str] = []

    def start(self, total: int) -> None:
        self.total = total

    def advance(self, n: int = 1) -> None:
        self.advanced += n

    def finish(self, message: str) -> None:
        self.finished.append(message)


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Provide a fake home directory with a populated Neovim layout."""
    home = tmp_path / "home"

    data = home / ".local" / "share" / "nvim"
    (data / "lazy" / "plugin").mkdir(parents=True)
    (data / "lazy" / "plugin" / "init.lua").write_text("return {}\n")
    (data / "shada").mkdir()
    (data / "shada" / "main.shada").write_bytes(b"\x00\x01\x02binary\xff")

    config = home / ".config" / "nvim"
    (config / "lua").mkdir(parents=True)
    (config / "init.lua").write_text('require("settings")\n')
    (config / "lua" / "settings.lua").write_text("vim.opt.number = true\n")
    (config / "after").mkdir()

    cache = home / ".cache" / "nvim"
    cache.mkdir(parents=True)
    (cache / "log").write_text("started\n")

    return home


@pytest.fixture
def ctx(home: Path) -> RootContext:
    return RootContext.discover(home)

