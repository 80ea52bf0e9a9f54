"""Capsule commands: create, list, restore."""

from __future__ import annotations

from rich.markup import escape
from rich.table import Table

from ..context import RootContext
from ..store import CapsuleStore
from ._common import console, human_size

NO_CAPSULES = "No capsules found."


def run_create(ctx: RootContext) -> None:
    """Build a capsule from the Neovim directories under ``ctx.home``."""
    from ..builder import build_capsule
    from ..progress import RichProgress

    console.print("\n[cyan]Creating capsule...[/]")
    with RichProgress(console, "Packing") as progress:
        result = build_capsule(ctx.sources, ctx.capsule_dir, progress=progress)

    console.print(
        f"Files: {result.file_count}  "
        f"Size: {human_size(result.capsule.size)}\n"
        f"Path: [cyan]{escape(str(result.capsule.path))}[/]"
    )


def run_list(ctx: RootContext) -> None:
    """Print every capsule with its 1-based index, oldest first."""
    capsules = CapsuleStore(ctx.capsule_dir).list()
    if not capsules:
        console.print(NO_CAPSULES)
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("#", style="green", justify="right")
    table.add_column("Filename", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Created", style="dim")

    for idx, capsule in enumerate(capsules, start=1):
        created = capsule.created_at or capsule.modified_at
        table.add_row(
            str(idx),
            capsule.name,
            human_size(capsule.size),
            created.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(f"\n[bold]{len(capsules)}[/] capsule(s):\n")
    console.print(table)
    console.print()


def run_restore(ctx: RootContext) -> None:
    """Ask for a capsule and a displacement mode, then restore it."""
    from ..progress import RichProgress
    from ..prompts import ClickSelectionProvider
    from ..restorer import CapsuleRestorer

    with RichProgress(console, "Restoring") as progress:
        restorer = CapsuleRestorer(
            ctx.sources,
            CapsuleStore(ctx.capsule_dir),
            ClickSelectionProvider(console),
            progress=progress,
        )
        result = restorer.run()

    if result is None:
        console.print(NO_CAPSULES)
        return

    for record in result.displaced:
        if record.moved_to is not None:
            console.print(
                f"  [yellow]kept[/] {escape(str(record.original))}"
                f" -> {escape(str(record.moved_to))}"
            )
        else:
            console.print(f"  [red]removed[/] {escape(str(record.original))}")
    console.print(f"Files: {result.file_count}  Target: [cyan]{escape(str(result.root))}[/]")
