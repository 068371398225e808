"""Tests for KitSettings — unified settings with TOML source."""

from pathlib import Path

import pytest

from kitctl.config.discovery import CONFIG_FILENAME
from kitctl.config.settings import KitSettings
from kitctl.errors import ConfigurationError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "KITCTL_CONFIG",
        "KITCTL_VERBOSE",
        "KITCTL_IDENTITY__NAME",
        "KITCTL_REPOSITORY__PATH",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = KitSettings.from_cli(base_dir=tmp_path)
        assert settings.base_dir == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.verbose is False
        assert settings.identity.name == "kitctl"
        assert settings.repository.atomic_writes is True
        assert settings.watch.workers == 1

    def test_repository_root_defaults_to_base_dir(self, tmp_path: Path) -> None:
        assert KitSettings.from_cli(base_dir=tmp_path).repository_root == tmp_path

    def test_frozen(self, tmp_path: Path) -> None:
        settings = KitSettings.from_cli(base_dir=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_sections(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            '[identity]\nname = "John Doe"\nemail = "john@doe.org"\n'
            "[repository]\natomic_writes = false\n"
            "[watch]\nworkers = 4\n"
        )
        settings = KitSettings.from_cli(base_dir=tmp_path)
        assert settings.identity.name == "John Doe"
        assert settings.identity.email == "john@doe.org"
        assert settings.repository.atomic_writes is False
        assert settings.repository.git_binary == "git"  # default preserved
        assert settings.watch.workers == 4
        assert settings.config_path == tmp_path / CONFIG_FILENAME

    def test_base_dir_from_discovered_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('[repository]\npath = "state"\n')
        child = tmp_path / "sub"
        child.mkdir()
        monkeypatch.chdir(child)
        settings = KitSettings.from_cli()
        assert settings.base_dir.resolve() == tmp_path.resolve()
        assert settings.repository_root.resolve() == (tmp_path / "state").resolve()

    def test_absolute_repository_path(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere"
        (tmp_path / CONFIG_FILENAME).write_text(f'[repository]\npath = "{target}"\n')
        assert KitSettings.from_cli(base_dir=tmp_path).repository_root == target

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[identity]\nname = "custom"\n')
        settings = KitSettings.from_cli(config_path=str(custom), base_dir=tmp_path)
        assert settings.identity.name == "custom"
        assert settings.config_path == custom

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[identity\n")
        with pytest.raises(ConfigurationError, match="invalid TOML") as exc_info:
            KitSettings.from_cli(base_dir=tmp_path)
        assert exc_info.value.stage == "config"

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="config file not found"):
            KitSettings.from_cli(config_path=str(tmp_path / "nope.toml"), base_dir=tmp_path)


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('[identity]\nname = "toml"\n')
        monkeypatch.setenv("KITCTL_IDENTITY__NAME", "env")
        assert KitSettings.from_cli(base_dir=tmp_path).identity.name == "env"

    def test_cli_flags_override_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KITCTL_VERBOSE", "false")
        settings = KitSettings.from_cli(base_dir=tmp_path, verbose=True, json_output=True)
        assert settings.verbose is True
        assert settings.json_output is True

    def test_repository_flag_keeps_other_keys(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            '[repository]\npath = "state"\ngit_binary = "/usr/bin/git"\n'
        )
        settings = KitSettings.from_cli(base_dir=tmp_path, repository_path="other")
        assert settings.repository_root == tmp_path / "other"
        assert settings.repository.git_binary == "/usr/bin/git"
