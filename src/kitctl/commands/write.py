"""Command: write objects into the repository (one commit per change)."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

import click

from kitctl.commands._base import examples, group_argument
from kitctl.errors import SerializationError

if TYPE_CHECKING:
    from kitctl.commands._context import AppContext


@click.command()
@examples(
    """\
  kitctl write pod pod.yaml
  kubectl get pods -A -o yaml | kitctl write pod
  kitctl --json write service svc-a.json svc-b.json"""
)
@group_argument
@click.argument("files", nargs=-1, type=click.File("r"))
@click.pass_obj
def write(app: AppContext, group: str, files: tuple[IO[str], ...]) -> None:
    """Write the objects in FILES (or stdin) under GROUP."""
    from kitctl.commands._input import read_documents
    from kitctl.services.store import StoreService

    try:
        documents = read_documents(files)
    except SerializationError as exc:
        app.fail("write", exc)

    app.emit(StoreService(app.store).write_many(group, documents))
