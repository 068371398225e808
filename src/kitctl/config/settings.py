"""KitSettings: CLI flags, environment and ``kitctl.toml`` merged once.

Sources, highest priority first:

1. keyword arguments (the CLI flags),
2. ``KITCTL_*`` environment variables, ``__`` separating nested keys
   (``KITCTL_IDENTITY__EMAIL``),
3. the discovered or explicit ``kitctl.toml``,
4. defaults from :mod:`kitctl.config.models`.

The TOML file is chosen per construction, so it travels to
``settings_customise_sources`` through a context variable rather than
``model_config``.
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    TomlConfigSettingsSource,
)

from kitctl.config.discovery import find_config
from kitctl.config.models import IdentityConfig, RepositoryConfig, WatchConfig
from kitctl.errors import ConfigurationError

_active_toml: ContextVar[Path | None] = ContextVar("kitctl_active_toml", default=None)


class KitSettings(BaseSettings):
    """Frozen settings for one kitctl invocation.

    Attributes:
        base_dir: Directory of the config file in effect, or the CWD.
            A relative ``[repository] path`` resolves against it.
        config_path: The TOML file that was read, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "KITCTL_",
        "env_nested_delimiter": "__",
    }

    base_dir: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_path = _active_toml.get()
        if toml_path is None:
            return (init_settings, env_settings)
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=toml_path),
        )

    @property
    def repository_root(self) -> Path:
        """Work tree to open: ``[repository] path`` or :attr:`base_dir`."""
        path = self.repository.path
        if path is None:
            return self.base_dir
        path = path.expanduser()
        return path if path.is_absolute() else self.base_dir / path

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        base_dir: Path | None = None,
        repository_path: str | None = None,
        **cli_flags: Any,
    ) -> KitSettings:
        """Build settings for a CLI run.

        *config_path* skips discovery; otherwise ``kitctl.toml`` is looked
        up from *base_dir* (or the CWD) upwards. *repository_path*
        (``--repository``) replaces ``[repository] path`` and keeps the
        rest of that section.

        Raises:
            ConfigurationError: the explicit config file is missing or the
                TOML cannot be parsed.
        """
        if config_path:
            toml_path: Path | None = Path(config_path)
            if not toml_path.is_file():
                raise ConfigurationError(
                    f"config file not found: {config_path}",
                    stage="config",
                    detail={"path": config_path},
                )
        else:
            toml_path = find_config(base_dir)

        if base_dir is None:
            base_dir = toml_path.parent if toml_path else Path.cwd()

        token = _active_toml.set(toml_path)
        try:
            settings = cls(base_dir=base_dir, config_path=toml_path, **cli_flags)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(
                f"invalid TOML in {toml_path}: {exc}",
                stage="config",
                detail={"path": str(toml_path)},
            ) from exc
        finally:
            _active_toml.reset(token)

        if repository_path:
            section = settings.repository.model_copy(update={"path": Path(repository_path)})
            settings = settings.model_copy(update={"repository": section})
        return settings
