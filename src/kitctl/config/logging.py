"""Logging setup: stdlib loggers rendered by structlog.

Library code only calls ``logging.getLogger(__name__)``. The CLI calls
:func:`configure_logging` once; records then go to stderr either as
console lines or, with ``--log-json``, as one JSON object per line.
Anything passed via ``extra=`` becomes a structured field.

Levels: the ``kitctl`` logger emits INFO (one line per commit) unless
``--verbose`` lowers it to DEBUG; every other logger stays at WARNING.
"""

from __future__ import annotations

import logging
import sys

import structlog

KIT_LOGGER = "kitctl"


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route all logging to stderr through structlog.

    Safe to call more than once; the root handler is replaced each time.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)
    logging.getLogger(KIT_LOGGER).setLevel(logging.DEBUG if verbose else logging.INFO)
