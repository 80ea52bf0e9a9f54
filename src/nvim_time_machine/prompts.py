"""
Interactive selection used by the restore flow.

The restorer asks a ``SelectionProvider`` which capsule to use and
whether to keep the current directories. The CLI wires in click
prompts; tests wire in ``StaticSelectionProvider``.
"""

from __future__ import annotations

from typing import Protocol, Sequence

import click
from rich.console import Console
from rich.markup import escape


class SelectionProvider(Protocol):
    """Blocking choice and confirmation prompts."""

    def choose_index(self, prompt: str, options: Sequence[str]) -> int: ...

    def confirm(self, prompt: str, default: bool = True) -> bool: ...


class ClickSelectionProvider:
    """Numbered menu on the rich console, answered through click prompts.

    EOF or Ctrl-C on either prompt raises ``click.Abort``.
    """

    def __init__(self, console: Console) -> None:
        self.console = console

    def choose_index(self, prompt: str, options: Sequence[str]) -> int:
        if not options:
            raise ValueError("Nothing to choose from")
        for idx, option in enumerate(options, start=1):
            self.console.print(f"  [green]({idx})[/] {escape(option)}")
        choice = click.prompt(
            f"  {prompt}",
            type=click.IntRange(1, len(options)),
            default=1,
        )
        return choice - 1

    def confirm(self, prompt: str, default: bool = True) -> bool:
        return click.confirm(f"  {prompt}", default=default)


class StaticSelectionProvider:
    """Answers every prompt with preset values.

    Args:
        index: 0-based option to pick.
        answer: Reply to every confirmation.
    """

    def __init__(self, index: int = 0, answer: bool = True) -> None:
        self.index = index
        self.answer = answer
        self.asked: list[str] = []

    def choose_index(self, prompt: str, options: Sequence[str]) -> int:
        self.asked.append(prompt)
        if not 0 <= self.index < len(options):
            raise click.Abort()
        return self.index

    def confirm(self, prompt: str, default: bool = True) -> bool:
        self.asked.append(prompt)
        return self.answer
