"""Filesystem mutations under the repository root.

Only the store calls these. Each helper translates ``OSError`` into a
:class:`~kitctl.errors.FilesystemError` tagged with its stage so the
caller can tell a failed ``mkdir`` from a failed ``write``.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from kitctl.errors import FilesystemError, NotFoundError


def ensure_directory(path: Path, *, mode: int = 0o755) -> None:
    """Create *path* and any missing parents."""
    if path.is_dir():
        return
    try:
        path.mkdir(mode=mode, parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(
            f"failed to create directory {path}: {exc.strerror or exc}",
            stage="mkdir",
            detail={"path": str(path)},
        ) from exc


def write_file_atomic(path: Path, data: bytes, *, mode: int = 0o644) -> None:
    """Write *data* to *path* via a sibling temp file and ``os.replace``.

    A reader opening *path* sees either the old or the new content,
    never a partial write.
    """
    try:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as exc:
        raise FilesystemError(
            f"failed to open temp file for {path}: {exc.strerror or exc}",
            stage="write",
            detail={"path": str(path)},
        ) from exc

    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise FilesystemError(
            f"failed to write to file {path}: {exc.strerror or exc}",
            stage="write",
            detail={"path": str(path)},
        ) from exc


def write_file_truncate(path: Path, data: bytes, *, mode: int = 0o644) -> None:
    """Truncate and rewrite *path* in place.

    A concurrent reader outside the store lock may observe a partial file.
    """
    try:
        fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise FilesystemError(
            f"failed to write to file {path}: {exc.strerror or exc}",
            stage="write",
            detail={"path": str(path)},
        ) from exc


def remove_file(path: Path) -> None:
    """Remove *path*.

    Raises:
        NotFoundError: *path* does not exist.
        FilesystemError: any other removal failure.
    """
    try:
        path.unlink()
    except FileNotFoundError as exc:
        raise NotFoundError(
            f"failed to delete file {path}: not found",
            stage="remove",
            detail={"path": str(path)},
        ) from exc
    except OSError as exc:
        raise FilesystemError(
            f"failed to delete file {path}: {exc.strerror or exc}",
            stage="remove",
            detail={"path": str(path)},
        ) from exc
