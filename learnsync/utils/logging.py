# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Logging for LearnSync, rendered by structlog.

Domain modules log through ``logging.getLogger(__name__)`` with %-style
arguments; the audit subscriber logs through a structlog logger. Both end up
on one stdout handler whose structlog ``ProcessorFormatter`` renders JSON in
production and console lines in development.

Every line carries the context bound for the current task: the principal
(``user_id``, ``user_role``) set by the principal middleware, and the data
manager ``operation`` and ``attempt`` set by the executor.

Example:
    >>> setup_logging(get_settings())
    >>> with log_context(operation="enroll_student", attempt=1):
    ...     logging.getLogger("learnsync.domains").info("Enrolled student %s", 6)
"""

import logging
import sys
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from learnsync.core.config.settings import Settings

QUIET_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "sqlalchemy.engine",
    "aiosqlite",
    "asyncio",
)

_handler: logging.Handler | None = None


def _context_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def build_formatter(json_output: bool) -> structlog.stdlib.ProcessorFormatter:
    """Build the formatter shared by stdlib and structlog records.

    Args:
        json_output: Render JSON lines instead of console output.
    """
    if json_output:
        rendering: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        rendering = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*_context_processors(), structlog.stdlib.ExtraAdder()],
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *rendering],
    )


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and route stdlib logging through it.

    Safe to call more than once; the previous LearnSync handler is replaced.

    Args:
        settings: Application settings containing log_level and debug flag.
    """
    global _handler
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_context_processors(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(
        build_formatter(json_output=not (settings.is_development or settings.debug))
    )
    root.addHandler(_handler)
    root.setLevel(log_level)

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
    logging.getLogger("learnsync").setLevel(log_level)


def reset_logging() -> None:
    """Remove the LearnSync handler and restore structlog defaults."""
    global _handler
    if _handler is not None:
        logging.getLogger().removeHandler(_handler)
        _handler = None
    structlog.reset_defaults()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given module name."""
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Bind values to every log line of the current task.

    Used by the principal middleware to attach user_id and user_role.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def log_context(**kwargs: object) -> AbstractContextManager[None]:
    """Bind values for the duration of a block, restoring previous values after.

    The executor wraps each operation in ``operation`` and each transaction
    attempt in ``attempt``.
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
