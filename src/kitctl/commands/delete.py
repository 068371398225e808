"""Command: delete objects from the repository."""

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
  kitctl delete pod pod.yaml
  echo '{"metadata": {"namespace": "default", "name": "web-1"}}' | kitctl delete pod"""
)
@group_argument
@click.argument("files", nargs=-1, type=click.File("r"))
@click.pass_obj
def delete(app: AppContext, group: str, files: tuple[IO[str], ...]) -> None:
    """Delete the objects identified by FILES (or stdin) from GROUP.

    Only metadata.namespace and metadata.name are read.
    """
    from kitctl.commands._input import read_documents
    from kitctl.services.store import StoreService

    try:
        documents = read_documents(files)
    except SerializationError as exc:
        app.fail("delete", exc)

    app.emit(StoreService(app.store).delete_many(group, documents))
