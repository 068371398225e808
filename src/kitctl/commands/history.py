"""Command: show the commit history of one stored object."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kitctl.commands._base import examples, group_argument

if TYPE_CHECKING:
    from kitctl.commands._context import AppContext


@click.command()
@examples(
    """\
  kitctl history pod default web-1
  kitctl history --limit 5 service kube-system kube-dns
  kitctl --json history pod default web-1"""
)
@group_argument
@click.argument("namespace")
@click.argument("name")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Show at most N commits.")
@click.pass_obj
def history(app: AppContext, group: str, namespace: str, name: str, limit: int | None) -> None:
    """List commits for NAMESPACE/NAME in GROUP, newest first."""
    from kitctl.services.store import StoreService

    app.emit(StoreService(app.store).history(group, namespace, name, limit=limit))
