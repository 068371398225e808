"""Shared pytest fixtures and test helpers for kitctl tests."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from kitctl.config.models import IdentityConfig
from kitctl.infrastructure.git import GitRepository
from kitctl.infrastructure.store import VersionedFileStore

FIXED_TIME = datetime(2024, 5, 17, 12, 30, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root and kitctl logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    kit = logging.getLogger("kitctl")
    kit_level = kit.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    kit.setLevel(kit_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def git_root(tmp_path: Path) -> Path:
    """Temporary directory holding an initialized git repo with one commit."""
    root = tmp_path / "repo"
    root.mkdir()
    for args in (
        ["git", "init", "--quiet"],
        ["git", "config", "user.email", "test@test.com"],
        ["git", "config", "user.name", "Test"],
        ["git", "config", "commit.gpgsign", "false"],
    ):
        subprocess.run(args, cwd=root, capture_output=True, check=True)
    # Create initial commit so HEAD exists
    (root / ".keep").write_text("", encoding="utf-8")
    subprocess.run(["git", "add", "."], cwd=root, capture_output=True, check=True)
    subprocess.run(
        ["git", "commit", "--quiet", "-m", "init"],
        cwd=root,
        capture_output=True,
        check=True,
    )
    return root


@pytest.fixture
def identity() -> IdentityConfig:
    return IdentityConfig(name="John Doe", email="john@doe.org")


@pytest.fixture
def repository(git_root: Path) -> GitRepository:
    return GitRepository.open(git_root)


@pytest.fixture
def store(repository: GitRepository, identity: IdentityConfig) -> VersionedFileStore:
    """Store over the temp repo with a fixed commit clock."""
    return VersionedFileStore(repository, identity, clock=lambda: FIXED_TIME)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_object(namespace: str = "default", name: str = "web-1", **fields: Any) -> dict[str, Any]:
    """Build a minimal unstructured object with identifying metadata."""
    return {"metadata": {"namespace": namespace, "name": name}, **fields}


def git_log(cwd: Path) -> list[str]:
    """Commit subjects, newest first (includes the fixture's ``init``)."""
    result = subprocess.run(
        ["git", "log", "--format=%s"],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip().splitlines()


def commit_count(cwd: Path) -> int:
    result = subprocess.run(
        ["git", "rev-list", "--count", "HEAD"],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return int(result.stdout.strip())


def git_status(cwd: Path) -> str:
    result = subprocess.run(
        ["git", "status", "--porcelain"],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture
def _isolated_repo(git_root: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run CLI commands from inside the temp repo with no config leaking in."""
    monkeypatch.chdir(git_root)
    monkeypatch.delenv("KITCTL_CONFIG", raising=False)
    monkeypatch.delenv("KITCTL_REPOSITORY__PATH", raising=False)
    return git_root
