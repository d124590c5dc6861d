"""structlog configuration for supervisectl.

Log records from stdlib loggers and structlog loggers share one stderr
handler, rendered either by structlog's console renderer or as JSON
lines (``--log-json``).

``-v`` turns on DEBUG for the ``supervisectl`` tree. The resolver logs
one line per directive entry, so it stays at INFO unless ``--trace`` is
also given.
"""

from __future__ import annotations

import logging
import sys

import structlog

APP_LOGGER = "supervisectl"
ENTRY_LOGGER = "supervisectl.domain.resolver"

_THIRD_PARTY_LEVELS = {"pluggy": logging.WARNING}

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def logger_levels(*, verbose: bool = False, trace: bool = False) -> dict[str, int]:
    """Return the level each supervisectl-managed logger should run at."""
    app_level = logging.DEBUG if verbose or trace else logging.WARNING
    if trace:
        entry_level = logging.DEBUG
    elif verbose:
        entry_level = logging.INFO
    else:
        entry_level = logging.WARNING
    return {APP_LOGGER: app_level, ENTRY_LOGGER: entry_level, **_THIRD_PARTY_LEVELS}


def _build_handler(log_json: bool) -> logging.Handler:
    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    return handler


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    trace: bool = False,
) -> None:
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output. When False, only WARNING+.
        log_json: Use JSON renderer instead of console renderer.
        trace: Also log each resolver decision (implies *verbose*).
    """
    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(_build_handler(log_json))
    root_logger.setLevel(logging.WARNING)

    for name, level in logger_levels(verbose=verbose, trace=trace).items():
        logging.getLogger(name).setLevel(level)
