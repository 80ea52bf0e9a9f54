"""
Progress reporting for builds and restores.

The builder and restorer only talk to a ``ProgressSink``; the CLI
plugs in a rich progress bar, tests use ``NullProgress`` or a recorder.
"""

from __future__ import annotations

from typing import Optional, Protocol

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


class ProgressSink(Protocol):
    """Receives sizing, advance and completion events."""

    def start(self, total: int) -> None: ...

    def advance(self, n: int = 1) -> None: ...

    def finish(self, message: str) -> None: ...


class NullProgress:
    """Sink that discards every event."""

    def start(self, total: int) -> None:
        pass

    def advance(self, n: int = 1) -> None:
        pass

    def finish(self, message: str) -> None:
        pass


class RichProgress:
    """Rich progress bar: spinner, elapsed time, bar, count and ETA.

    Use as a context manager so the live display is torn down even
    when the operation fails halfway.

    Args:
        console: Console to draw on.
        description: Label shown to the left of the bar.
    """

    def __init__(self, console: Console, description: str = "") -> None:
        self.console = console
        self.description = description
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def __enter__(self) -> "RichProgress":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._stop()

    def start(self, total: int) -> None:
        self._progress = Progress(
            SpinnerColumn(style="green"),
            TimeElapsedColumn(),
            BarColumn(complete_style="cyan", finished_style="blue"),
            MofNCompleteColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )
        self._progress.start()
        self._task = self._progress.add_task(self.description, total=total)

    def advance(self, n: int = 1) -> None:
        if self._progress is not None and self._task is not None:
            self._progress.advance(self._task, n)

    def finish(self, message: str) -> None:
        self._stop()
        self.console.print(message)

    def _stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task = None
