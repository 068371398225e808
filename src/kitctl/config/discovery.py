"""Locate ``kitctl.toml``.

``KITCTL_CONFIG`` names the file outright; otherwise the search walks
from the start directory towards the filesystem root, the way git looks
for ``.git``.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "kitctl.toml"
CONFIG_ENV_VAR = "KITCTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file in effect for *start* (default: CWD), or None.

    A ``KITCTL_CONFIG`` that points at a missing file disables discovery.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
