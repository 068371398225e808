"""Thin subprocess wrapper around the ``git`` binary.

The repository must already exist: :meth:`GitRepository.open` verifies
that the directory is the top level of a work tree and never runs
``git init``. Every call runs with ``cwd`` set to the work tree root and
``check=True``; failures surface as
:class:`~kitctl.errors.VersionControlError` with the git exit code and
stderr in ``detail``.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from kitctl.errors import ConfigurationError, VersionControlError

logger = logging.getLogger(__name__)

# Unit / record separators for ``git log --format``
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"


@dataclass(frozen=True)
class Signature:
    """Author/committer identity plus timestamp for one commit."""

    name: str
    email: str
    when: datetime

    def env(self) -> dict[str, str]:
        """Environment overrides applying this signature to ``git commit``."""
        stamp = self.when.isoformat()
        return {
            "GIT_AUTHOR_NAME": self.name,
            "GIT_AUTHOR_EMAIL": self.email,
            "GIT_AUTHOR_DATE": stamp,
            "GIT_COMMITTER_NAME": self.name,
            "GIT_COMMITTER_EMAIL": self.email,
            "GIT_COMMITTER_DATE": stamp,
        }


@dataclass(frozen=True)
class StatusEntry:
    """One line of ``git status --porcelain``."""

    code: str
    path: str
    orig_path: str | None = None


@dataclass(frozen=True)
class WorktreeStatus:
    """Parsed work-tree status (staged, unstaged and untracked changes)."""

    entries: tuple[StatusEntry, ...] = ()

    def is_clean(self) -> bool:
        return not self.entries

    def has_path(self, path: str) -> bool:
        """Whether *path* appears in the status, as source or target."""
        return any(e.path == path or e.orig_path == path for e in self.entries)

    @classmethod
    def parse(cls, output: str) -> WorktreeStatus:
        """Parse ``git status --porcelain=v1 -z`` output.

        Records are NUL-terminated ``XY <path>``; renames and copies are
        followed by an extra record holding the original path.
        """
        tokens = output.split("\0")
        entries: list[StatusEntry] = []
        i = 0
        while i < len(tokens):
            token = tokens[i]
            i += 1
            if len(token) < 4:
                continue
            code, path = token[:2], token[3:]
            orig: str | None = None
            if "R" in code or "C" in code:
                orig = tokens[i] if i < len(tokens) else None
                i += 1
            entries.append(StatusEntry(code=code, path=path, orig_path=orig))
        return cls(entries=tuple(entries))


@dataclass(frozen=True)
class LogEntry:
    """One commit from ``git log``."""

    revision: str
    author_name: str
    author_email: str
    timestamp: datetime
    message: str


class GitRepository:
    """Handle on an existing git work tree.

    Construct with :meth:`open`; the instance is then owned by exactly
    one :class:`~kitctl.infrastructure.store.VersionedFileStore`.
    """

    def __init__(self, root: Path, *, git_binary: str = "git") -> None:
        self._root = root
        self._git = git_binary

    @property
    def root(self) -> Path:
        return self._root

    @classmethod
    def open(cls, directory: Path | str, *, git_binary: str = "git") -> GitRepository:
        """Open the work tree rooted exactly at *directory*.

        Raises:
            ConfigurationError: the directory is missing, is not a git
                work tree, is a subdirectory of one, or git is unavailable.
        """
        root = Path(directory).expanduser()
        if not root.is_dir():
            raise ConfigurationError(
                f"repository directory does not exist: {root}",
                stage="open",
                detail={"path": str(root)},
            )
        root = root.resolve()

        try:
            result = subprocess.run(
                [git_binary, "rev-parse", "--show-toplevel"],
                cwd=root,
                capture_output=True,
                text=True,
                check=True,
            )
        except OSError as exc:
            raise ConfigurationError(
                f"failed to run {git_binary}: {exc}",
                stage="open",
                detail={"path": str(root)},
            ) from exc
        except subprocess.CalledProcessError as exc:
            raise ConfigurationError(
                f"not a git repository: {root}",
                stage="open",
                detail={"path": str(root), "stderr": (exc.stderr or "").strip()},
            ) from exc

        toplevel = Path(result.stdout.strip()).resolve()
        if toplevel != root:
            raise ConfigurationError(
                f"{root} is inside the work tree {toplevel}, not its root",
                stage="open",
                detail={"path": str(root), "toplevel": str(toplevel)},
            )

        return cls(root, git_binary=git_binary)

    # ------------------------------------------------------------------
    # Subprocess helper
    # ------------------------------------------------------------------

    def run(
        self,
        *args: str,
        stage: str,
        env: dict[str, str] | None = None,
        config: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run ``git <args>`` in the work tree. Raises on failure.

        *config* entries are passed as ``-c key=value`` ahead of the
        subcommand.
        """
        logger.debug("git %s", " ".join(args))
        overrides: list[str] = []
        for key, value in (config or {}).items():
            overrides.extend(["-c", f"{key}={value}"])
        full_env = {**os.environ, **env} if env else None
        try:
            return subprocess.run(
                [self._git, *overrides, *args],
                cwd=self._root,
                capture_output=True,
                text=True,
                check=True,
                env=full_env,
            )
        except OSError as exc:
            raise VersionControlError(
                f"failed to run git {args[0]}: {exc}",
                stage=stage,
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            raise VersionControlError(
                f"git {args[0]} exited with {exc.returncode}: {stderr}",
                stage=stage,
                detail={"returncode": exc.returncode, "stderr": stderr},
            ) from exc

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def status(self) -> WorktreeStatus:
        result = self.run(
            "status",
            "--porcelain=v1",
            "-z",
            "--untracked-files=all",
            stage="status",
        )
        return WorktreeStatus.parse(result.stdout)

    def add(self, path: str) -> None:
        """Stage *path*, including its removal if it was deleted."""
        self.run("add", "--all", "--", path, stage="stage")

    def commit(self, path: str, message: str, signature: Signature) -> str:
        """Commit only *path* and return the new revision id."""
        self.run(
            "commit",
            "--no-verify",
            "--quiet",
            "--only",
            "-m",
            message,
            "--",
            path,
            stage="commit",
            env=signature.env(),
            config={"commit.gpgsign": "false"},
        )
        return self.head()

    def head(self) -> str:
        return self.run("rev-parse", "HEAD", stage="commit").stdout.strip()

    def has_commits(self) -> bool:
        try:
            self.run("rev-parse", "--verify", "--quiet", "HEAD", stage="log")
        except VersionControlError:
            return False
        return True

    def log(self, path: str, *, limit: int | None = None) -> list[LogEntry]:
        """Commits touching *path*, newest first."""
        if not self.has_commits():
            return []
        fmt = _FIELD_SEP.join(["%H", "%an", "%ae", "%aI", "%s"]) + _RECORD_SEP
        args = ["log", f"--format={fmt}"]
        if limit is not None:
            args.append(f"--max-count={limit}")
        args.extend(["--", path])
        output = self.run(*args, stage="log").stdout

        entries: list[LogEntry] = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            revision, name, email, when, subject = record.split(_FIELD_SEP, 4)
            entries.append(
                LogEntry(
                    revision=revision,
                    author_name=name,
                    author_email=email,
                    timestamp=datetime.fromisoformat(when),
                    message=subject,
                )
            )
        return entries
