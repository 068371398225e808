"""VersionedFileStore: one YAML file and one commit per object change.

The store exclusively owns its repository: no other component touches
files under the root or runs git there. A single :class:`threading.Lock`
serializes every write/delete/commit sequence, because the git index is
not safe for concurrent mutation.

Per-call state machine::

    Idle -> Locked -> PathResolved -> ContentWritten | Removed
         -> StatusChecked -> Committed | SkippedClean -> Unlocked

Any failure jumps straight to Unlocked with a :class:`~kitctl.errors.KitError`.
Nothing is rolled back: a staged-but-uncommitted change may remain after
a commit failure and recovering it is left to the operator.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from kitctl.domain.objects import StoredObject
from kitctl.domain.paths import PathPair, check_inside_root, resolve_paths
from kitctl.domain.serialization import serialize_object
from kitctl.infrastructure.coalescer import CommitCoalescer, CommitRecord
from kitctl.infrastructure.filesystem import (
    ensure_directory,
    remove_file,
    write_file_atomic,
    write_file_truncate,
)
from kitctl.infrastructure.git import GitRepository, LogEntry

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from kitctl.config.models import IdentityConfig

logger = logging.getLogger(__name__)

CHANGED_MESSAGE = "Object changed: {path}"
DELETED_MESSAGE = "Object deleted: {path}"


class VersionedFileStore:
    """Persist objects as ``<root>/<namespace>/<group>/<name>.yml``.

    Parameters:
        repository: An already-opened work tree, owned by this store.
        identity: Author/committer identity for every commit.
        atomic_writes: Write via temp file + rename (default). When False,
            truncate and rewrite in place.
        dir_mode: Mode for created directories.
        file_mode: Mode for written files.
        clock: Commit timestamp source (tests).
    """

    def __init__(
        self,
        repository: GitRepository,
        identity: IdentityConfig,
        *,
        atomic_writes: bool = True,
        dir_mode: int = 0o755,
        file_mode: int = 0o644,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repository
        self._coalescer = CommitCoalescer(repository, identity, clock=clock)
        self._atomic_writes = atomic_writes
        self._dir_mode = dir_mode
        self._file_mode = file_mode
        self._lock = threading.Lock()

    @classmethod
    def open(
        cls,
        directory: Path | str,
        identity: IdentityConfig,
        *,
        git_binary: str = "git",
        **kwargs: Any,
    ) -> VersionedFileStore:
        """Open the repository at *directory* and wrap it in a store.

        Raises:
            ConfigurationError: the repository cannot be opened.
        """
        return cls(GitRepository.open(directory, git_binary=git_binary), identity, **kwargs)

    @property
    def root(self) -> Path:
        return self._repo.root

    @property
    def repository(self) -> GitRepository:
        return self._repo

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def paths_for(self, group: str, obj: Any) -> PathPair:
        """Resolve where *obj* lives without touching the repository."""
        return resolve_paths(self.root, group, StoredObject.from_object(obj))

    def write(self, group: str, obj: Any) -> CommitRecord | None:
        """Write *obj* and commit it.

        Returns the commit record, or ``None`` when the file content did
        not change.
        """
        with self._lock:
            stored = StoredObject.from_object(obj)
            paths = resolve_paths(self.root, group, stored)
            check_inside_root(self.root, paths.file)
            logger.debug("Resolved %s to %s", stored.key, paths.file.relative)

            data = serialize_object(stored.fields)

            ensure_directory(paths.directory.absolute, mode=self._dir_mode)
            if self._atomic_writes:
                write_file_atomic(paths.file.absolute, data, mode=self._file_mode)
            else:
                write_file_truncate(paths.file.absolute, data, mode=self._file_mode)
            logger.debug("Wrote %d bytes to %s", len(data), paths.file.relative)

            message = CHANGED_MESSAGE.format(path=paths.file.relative)
            return self._coalescer.commit(paths.file.relative, message)

    def delete(self, group: str, obj: Any) -> CommitRecord | None:
        """Remove the file for *obj* and commit the removal.

        Raises:
            NotFoundError: the object was never written (no commit).
        """
        with self._lock:
            stored = StoredObject.from_object(obj)
            paths = resolve_paths(self.root, group, stored)
            check_inside_root(self.root, paths.file)
            logger.debug("Resolved %s to %s", stored.key, paths.file.relative)

            remove_file(paths.file.absolute)
            logger.debug("Removed %s", paths.file.relative)

            message = DELETED_MESSAGE.format(path=paths.file.relative)
            return self._coalescer.commit(paths.file.relative, message)

    def commit(self, relative_path: str, message: str) -> CommitRecord | None:
        """Commit a pending change to *relative_path*, if any."""
        with self._lock:
            return self._coalescer.commit(relative_path, message)

    def history(self, group: str, obj: Any, *, limit: int | None = None) -> list[LogEntry]:
        """Commits that touched the file for *obj*, newest first."""
        paths = resolve_paths(self.root, group, StoredObject.from_object(obj))
        with self._lock:
            return self._repo.log(paths.file.relative, limit=limit)
