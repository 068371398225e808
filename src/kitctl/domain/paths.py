"""Path resolution for stored objects.

Addressing scheme: ``<root>/<namespace>/<group>/<name>.yml``.

The relative form is POSIX-style and repository-root relative (what git
sees); the absolute form is a :class:`~pathlib.Path` used for I/O. The
shape of this mapping is the on-disk contract, changing it orphans every
file already committed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from kitctl.domain.objects import StoredObject
from kitctl.errors import UnsafePathError

FILE_SUFFIX = ".yml"

# Compared lower-cased: case-insensitive filesystems map .GIT onto .git
_FORBIDDEN_SEGMENTS = frozenset({"", ".", "..", ".git"})
_FORBIDDEN_CHARS = ("/", "\\", "\x00")


@dataclass(frozen=True)
class ResolvedPath:
    """A location in both repository-relative and absolute form."""

    relative: str
    absolute: Path


@dataclass(frozen=True)
class PathPair:
    """Directory and file locations for one stored object."""

    directory: ResolvedPath
    file: ResolvedPath


def check_segment(kind: str, value: str) -> str:
    """Reject values that are not a single, plain path segment.

    ``.git`` is refused too: files under it are invisible to ``git status``.
    """
    if value.lower() in _FORBIDDEN_SEGMENTS or any(ch in value for ch in _FORBIDDEN_CHARS):
        raise UnsafePathError(
            f"{kind} is not a valid path segment: {value!r}",
            stage="resolve",
            detail={"field": kind, "value": value},
        )
    return value


def resolve_paths(
    root_dir: Path,
    group: str,
    obj: StoredObject | Mapping[str, Any],
) -> PathPair:
    """Resolve the directory and file paths for *obj* under *root_dir*.

    Raises:
        MissingFieldError: ``metadata.namespace`` or ``metadata.name`` is
            missing or not a string.
        UnsafePathError: a segment is empty, ``.``, ``..`` or ``.git``, or
            contains a separator.
    """
    stored = obj if isinstance(obj, StoredObject) else StoredObject.from_unstructured(obj)

    namespace = check_segment("namespace", stored.namespace)
    group = check_segment("group", group)
    name = check_segment("name", stored.name)

    directory = PurePosixPath(namespace, group)
    file = directory / f"{name}{FILE_SUFFIX}"

    return PathPair(
        directory=ResolvedPath(
            relative=str(directory),
            absolute=root_dir.joinpath(*directory.parts),
        ),
        file=ResolvedPath(
            relative=str(file),
            absolute=root_dir.joinpath(*file.parts),
        ),
    )


def check_inside_root(root_dir: Path, path: ResolvedPath) -> None:
    """Reject *path* when symlinks carry it outside *root_dir*.

    Unlike :func:`resolve_paths` this reads the filesystem; callers that
    mutate the tree run it under their lock.
    """
    if not path.absolute.resolve().is_relative_to(root_dir.resolve()):
        raise UnsafePathError(
            f"Path escapes repository root: {path.relative}",
            stage="resolve",
            detail={"path": path.relative},
        )
