"""Shared Click decorators for kitctl commands.

``--examples`` prints a command's usage examples and exits, which keeps
``--help`` down to arguments and options.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

F = TypeVar("F", bound=Callable[..., Any])

group_argument = click.argument("group", metavar="GROUP")


def examples(text: str) -> Callable[[F], F]:
    """Attach an eager ``--examples`` flag that prints *text* and exits."""

    def show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(text)
        ctx.exit(0)

    return click.option(
        "--examples",
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=show,
        help="Show usage examples.",
    )
