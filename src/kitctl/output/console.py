"""Rich console for rendering results into a string.

Renderers print to a console backed by :class:`io.StringIO` and return
the text, so ``format_result`` stays a plain ``str`` function. Rich
drops colour codes by itself when the buffer is not a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

KIT_THEME = Theme(
    {
        "kit.ok": "bold green",
        "kit.error": "bold red",
        "kit.op": "bold cyan",
        "kit.key": "dim",
        "kit.revision": "bold blue",
        "kit.path": "dim",
        "kit.skipped": "dim",
    }
)

DEFAULT_WIDTH = 120


def create_console(*, width: int = DEFAULT_WIDTH) -> Console:
    return Console(file=StringIO(), theme=KIT_THEME, highlight=False, width=width)


def get_output(console: Console) -> str:
    """Text printed to a console made by :func:`create_console`."""
    buffer = console.file
    if not isinstance(buffer, StringIO):
        msg = "console is not backed by a StringIO buffer"
        raise TypeError(msg)
    return buffer.getvalue()
