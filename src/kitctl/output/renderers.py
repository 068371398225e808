"""Human-readable rendering of ServiceResult, one renderer per op.

:func:`render_result` picks the renderer from ``result.op`` (ops without
one get a key/value listing) and returns the console text. Output has no
ANSI codes when Rich is not writing to a terminal, which covers pipes
and ``CliRunner``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from kitctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from kitctl.services.result import ServiceResult

Renderer = Callable[["ServiceResult", "Console", bool], None]

SHORT_REVISION = 12
_FIELD_STYLES = {"revision": "kit.revision", "path": "kit.path"}


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render *result* for a terminal; *verbose* adds error detail and authors."""
    console = create_console()
    if result.ok:
        _RENDERERS.get(result.op, _render_fields)(result, console, verbose)
    else:
        _render_error(result, console, verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """``--quiet`` output: new revisions, one per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(i["revision"]) for i in items if i.get("revision"))
    if result.data.get("revision"):
        return str(result.data["revision"])
    return f"OK: {result.op}"


def _short(revision: str) -> str:
    return revision[:SHORT_REVISION]


def _header(console: Console, result: ServiceResult) -> None:
    console.print(Text.assemble(("OK", "kit.ok"), (f"  {result.op}", "kit.op")))


def _line(console: Console, key: str, value: Any) -> None:
    console.print(
        Text.assemble(
            (f"  {key}: ", "kit.key"),
            (str(value), _FIELD_STYLES.get(key, "")),
        )
    )


def _render_error(result: ServiceResult, console: Console, verbose: bool) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text.assemble(("ERROR", "kit.error"), (f"  {result.op}", "kit.op"), f" — {msg}")
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in err.detail.items():
            console.print(Text(f"    {key}: {value}"))


def _render_fields(result: ServiceResult, console: Console, verbose: bool) -> None:
    _header(console, result)
    for key, value in result.data.items():
        _line(console, key, value)


def _render_mutation(result: ServiceResult, console: Console, verbose: bool) -> None:
    """write/delete: one object as fields, a batch as a path/revision table."""
    _header(console, result)
    items = result.data.get("items")
    if items is None:
        for key in ("path", "committed", "revision", "message"):
            if key in result.data:
                _line(console, key, result.data[key])
        return

    _line(console, "group", result.data.get("group", ""))
    _line(console, "objects", result.data.get("count", len(items)))
    _line(console, "commits", result.data.get("committed", 0))
    if not items:
        return

    table = Table(pad_edge=False)
    table.add_column("Path", style="kit.path")
    table.add_column("Revision", style="kit.revision", no_wrap=True)
    for item in items:
        revision = item.get("revision")
        table.add_row(
            str(item.get("path", "")),
            _short(revision) if revision else Text("unchanged", style="kit.skipped"),
        )
    console.print()
    console.print(table)


def _render_watch(result: ServiceResult, console: Console, verbose: bool) -> None:
    _header(console, result)
    for key in ("group", "total", "written", "unchanged", "deleted", "skipped", "failed"):
        if key in result.data:
            _line(console, key, result.data[key])


def _render_history(result: ServiceResult, console: Console, verbose: bool) -> None:
    items = result.data.get("items", [])
    table = Table(pad_edge=False)
    table.add_column("Revision", style="kit.revision", no_wrap=True)
    table.add_column("Date", style="dim")
    table.add_column("Message")
    if verbose:
        table.add_column("Author", style="dim")
    for item in items:
        cells = [
            item["revision"] if verbose else _short(item["revision"]),
            item["timestamp"],
            item["message"],
        ]
        if verbose:
            cells.append(item["author"])
        table.add_row(*cells)

    console.print(Text(result.data.get("path", ""), style="kit.path"))
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} commits")


_RENDERERS: dict[str, Renderer] = {
    "write": _render_mutation,
    "delete": _render_mutation,
    "watch": _render_watch,
    "history": _render_history,
}
