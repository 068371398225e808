"""Commit coalescing: one commit per net change, none for no-ops.

Algorithm for :meth:`CommitCoalescer.commit`:

1. read the work-tree status,
2. return ``None`` when the tree is clean, or when the target path has
   no pending change (byte-identical rewrite),
3. stage exactly the target path,
4. commit only that path with the configured identity and the current
   UTC time,
5. log ``"<message> (<revision>)"``.

The coalescer takes no lock of its own. It is only called with the
owning store's lock held.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel

from kitctl.infrastructure.git import Signature

if TYPE_CHECKING:
    from kitctl.config.models import IdentityConfig
    from kitctl.infrastructure.git import GitRepository

logger = logging.getLogger(__name__)


class CommitRecord(BaseModel):
    """An immutable record of one created commit."""

    model_config = {"frozen": True}

    message: str
    path: str
    author_name: str
    author_email: str
    timestamp: datetime
    revision: str


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(microsecond=0)


class CommitCoalescer:
    """Turn a mutated path into at most one commit."""

    def __init__(
        self,
        repository: GitRepository,
        identity: IdentityConfig,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repository
        self._identity = identity
        self._clock = clock or _utcnow

    def commit(self, relative_path: str, message: str) -> CommitRecord | None:
        """Commit *relative_path* if it changed.

        Returns the record of the new commit, or ``None`` when there was
        nothing to commit.

        Raises:
            VersionControlError: with ``stage`` ``status``, ``stage`` or
                ``commit``.
        """
        status = self._repo.status()

        if status.is_clean():
            logger.debug("Working tree clean, skipping commit for %s", relative_path)
            return None
        # Byte-identical rewrites leave no status entry
        if not status.has_path(relative_path):
            logger.debug("No change to %s, skipping commit", relative_path)
            return None

        self._repo.add(relative_path)

        signature = Signature(
            name=self._identity.name,
            email=self._identity.email,
            when=self._clock(),
        )
        revision = self._repo.commit(relative_path, message, signature)

        logger.info(
            "%s (%s)",
            message,
            revision,
            extra={"path": relative_path, "revision": revision},
        )
        return CommitRecord(
            message=message,
            path=relative_path,
            author_name=signature.name,
            author_email=signature.email,
            timestamp=signature.when,
            revision=revision,
        )
