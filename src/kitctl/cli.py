"""Entry point: the ``kitctl`` group, its global options and subcommands."""

from __future__ import annotations

import click

from kitctl import __version__
from kitctl.commands import register_commands
from kitctl.commands._context import AppContext
from kitctl.config.settings import KitSettings
from kitctl.errors import ConfigurationError


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="kitctl")
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print commit revisions only.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and full revisions.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Use this kitctl.toml instead of searching for one.",
)
@click.option(
    "-r",
    "--repository",
    "repository_path",
    type=click.Path(file_okay=False),
    default=None,
    help="Git work tree to write into (default: config directory or CWD).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    repository_path: str | None,
) -> None:
    """kitctl: mirror structured objects into a Git repository."""
    try:
        settings = KitSettings.from_cli(
            config_path=config_path,
            repository_path=repository_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
        )
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
