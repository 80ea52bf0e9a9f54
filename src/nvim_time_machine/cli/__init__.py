"""
nvim-time-machine CLI.

Three mutually exclusive actions; the first one given wins and no
action at all does nothing.

Entry point: nvim_time_machine.cli:main
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

from .. import __version__
from ..context import RootContext
from ..models import CapsuleError
from ._common import console, setup_logging
from .capsule import run_create, run_list, run_restore


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="nvimTimeMachine")
@click.option("-c", "--create-capsule", is_flag=True, help="Create a new capsule.")
@click.option("-l", "--list-capsules", is_flag=True, help="List existing capsules.")
@click.option("-r", "--restore-capsule", is_flag=True, help="Restore from a capsule.")
@click.option(
    "--home",
    default=None,
    type=click.Path(file_okay=False),
    help="Home directory to work under (defaults to yours).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every step to stderr.")
def main(
    create_capsule: bool,
    list_capsules: bool,
    restore_capsule: bool,
    home: Optional[str],
    verbose: bool,
):
    """Manage Neovim time capsules.

    Examples:

        nvim-time-machine -c

        nvim-time-machine -l

        nvim-time-machine -r
    """
    setup_logging(verbose)

    try:
        ctx = RootContext.discover(Path(home) if home else None)
        if create_capsule:
            run_create(ctx)
        elif list_capsules:
            run_list(ctx)
        elif restore_capsule:
            run_restore(ctx)
    except (CapsuleError, OSError) as exc:
        console.print(f"[red]{escape(str(exc))}[/]")
        raise SystemExit(1)
