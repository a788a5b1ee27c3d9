"""Subcommand modules for fieldwise.

``register_commands()`` imports each command lazily so
``fieldwise --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from fieldwise.commands.check import check
    from fieldwise.commands.repair import repair
    from fieldwise.commands.stream import stream

    cli.add_command(check)
    cli.add_command(repair)
    cli.add_command(stream)
