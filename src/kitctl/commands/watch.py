"""Command: mirror a stream of watch events into the repository."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

import click

from kitctl.commands._base import examples, group_argument

if TYPE_CHECKING:
    from kitctl.commands._context import AppContext


@click.command()
@examples(
    """\
  kubectl get pods -A --watch --output-watch-events -o json | kitctl watch pod
  kitctl watch service events.json
  kitctl watch --workers 4 endpoint events.json"""
)
@group_argument
@click.argument("source", type=click.File("r"), default="-")
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Handler threads (default: [watch] workers).",
)
@click.pass_obj
def watch(app: AppContext, group: str, source: IO[str], workers: int | None) -> None:
    """Apply ADDED/MODIFIED/DELETED events from SOURCE (default stdin) to GROUP."""
    from kitctl.services.events import iter_watch_events
    from kitctl.services.store import StoreService

    count = workers or app.settings.watch.workers
    app.emit(StoreService(app.store).replay(group, iter_watch_events(source), workers=count))
