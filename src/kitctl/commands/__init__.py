"""Subcommand modules for kitctl.

Provides register_commands() which uses deferred imports to keep
``kitctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from kitctl.commands.delete import delete
    from kitctl.commands.history import history
    from kitctl.commands.watch import watch
    from kitctl.commands.write import write

    cli.add_command(write)
    cli.add_command(delete)
    cli.add_command(watch)
    cli.add_command(history)
