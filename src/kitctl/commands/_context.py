"""AppContext: per-invocation state handed to every subcommand.

The root group builds it from :class:`~kitctl.config.settings.KitSettings`
and stores it as ``ctx.obj``; commands receive it with
``@click.pass_obj``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click

from kitctl.config.logging import configure_logging
from kitctl.errors import ConfigurationError, KitError
from kitctl.output.formatters import OutputSettings, format_result
from kitctl.services.result import ServiceResult

if TYPE_CHECKING:
    from kitctl.config.settings import KitSettings
    from kitctl.infrastructure.store import VersionedFileStore


class AppContext:
    """Settings, the lazily opened store and result output for one run."""

    def __init__(self, settings: KitSettings) -> None:
        self.settings = settings
        self.output = OutputSettings(
            json_output=settings.json_output,
            quiet=settings.quiet,
            verbose=settings.verbose,
        )
        self._store: VersionedFileStore | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def store(self) -> VersionedFileStore:
        """Store over ``settings.repository_root``, opened on first access.

        ``--help`` and ``--examples`` never get here, so they work outside
        a repository. An unusable repository ends the run like a failed
        ``open`` operation.
        """
        if self._store is None:
            from kitctl.infrastructure.store import VersionedFileStore

            section = self.settings.repository
            try:
                self._store = VersionedFileStore.open(
                    self.settings.repository_root,
                    self.settings.identity,
                    git_binary=section.git_binary,
                    atomic_writes=section.atomic_writes,
                    dir_mode=section.dir_mode,
                    file_mode=section.file_mode,
                )
            except ConfigurationError as exc:
                self.fail("open", exc)
        return self._store

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; exit with status 1 if it failed.

        Successful output goes to stdout so it can be piped; warnings and
        failures go to stderr. JSON output already carries the warnings.
        """
        text = format_result(result, settings=self.output)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)

        click.echo(text)
        if not self.output.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)

    def fail(self, op: str, exc: KitError) -> NoReturn:
        """Report *exc* as the failure of *op* and exit."""
        self.emit(ServiceResult.failure(op, exc))
        raise SystemExit(1)
