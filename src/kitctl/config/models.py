"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, kitctl.toml only contains
overrides. A working setup needs nothing but a repository path, which
defaults to the directory holding kitctl.toml.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class RepositoryConfig(BaseModel):
    """[repository] section."""

    model_config = {"frozen": True}

    path: Path | None = None
    atomic_writes: bool = True
    dir_mode: int = 0o755
    file_mode: int = 0o644
    git_binary: str = "git"


class IdentityConfig(BaseModel):
    """[identity] section: author and committer of every commit."""

    model_config = {"frozen": True}

    name: str = "kitctl"
    email: str = "kitctl@localhost"


class WatchConfig(BaseModel):
    """[watch] section."""

    model_config = {"frozen": True}

    workers: int = Field(default=1, ge=1)
