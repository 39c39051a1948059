"""Logging setup for notekeeper.

Modules get a logger with :func:`get_logger` and emit key/value events::

    logger = get_logger(__name__)
    logger.info('note_created', note_id=note.id)

Applications (such as the CLI) call :func:`configure_logging` once at startup to choose a level.
Events are rendered to stderr.
"""

import logging
import sys

import structlog


def configure_logging(level: str = 'WARNING') -> None:
    """Configures structlog to render events at or above the given level to stderr.

    ``level`` is a standard level name such as ``'DEBUG'`` or ``'WARNING'``.
    Raises :exc:`ValueError` for unknown level names.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f'Unknown log level: {level}')
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str):
    return structlog.get_logger(name)
