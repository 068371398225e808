"""Tests for the root kitctl CLI."""

import pytest
from click.testing import CliRunner

from kitctl import __version__
from kitctl.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "kitctl" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        (["write", "--help"], ["GROUP", "FILES"]),
        (["delete", "--help"], ["GROUP", "FILES"]),
        (["watch", "--help"], ["SOURCE", "--workers"]),
        (["history", "--help"], ["NAMESPACE", "NAME", "--limit"]),
    ],
)
def test_command_help(cli_runner: CliRunner, args: list[str], expected: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for keyword in expected:
        assert keyword in result.output


def test_all_commands_registered() -> None:
    assert set(cli.commands) == {"write", "delete", "watch", "history"}


@pytest.mark.parametrize("flag", ["--json", "-q", "-v", "--log-json"])
def test_global_flags_accepted(cli_runner: CliRunner, flag: str) -> None:
    result = cli_runner.invoke(cli, [flag, "--version"])
    assert result.exit_code == 0
