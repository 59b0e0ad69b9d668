"""Logging utilities for viewspace.

This module provides structlog logger factories that render text or JSON
events through stdlib loggers under the ``viewspace`` namespace. Each logger
is self-contained and does not modify global structlog configuration.

Events are written to stderr through a single handler on the ``viewspace``
logger. Levels set by the host application on that logger are respected;
viewspace only sets a level when one is requested explicitly, either through
the ``level`` parameter or the ``VIEWSPACE_DEBUG`` / ``VIEWSPACE_LOG_LEVEL``
environment variables.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

ROOT_LOGGER = "viewspace"


class _StderrHandler(logging.StreamHandler):  # pyright: ignore[reportMissingTypeArgument]
    """Stream handler writing to whatever ``sys.stderr`` is at emit time."""

    def __init__(self) -> None:
        super().__init__(sys.stderr)
        self.setFormatter(logging.Formatter("%(message)s"))

    @property
    def stream(self) -> TextIO:  # pyright: ignore[reportIncompatibleVariableOverride]
        return sys.stderr

    @stream.setter
    def stream(self, value: TextIO) -> None:
        pass


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks VIEWSPACE_DEBUG first (sets DEBUG if present), then
    VIEWSPACE_LOG_LEVEL. Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    level = _env_log_level()
    return level if level is not None else logging.INFO


def _env_log_level() -> int | None:
    """Return the level requested through the environment, if any."""
    if getenv("VIEWSPACE_DEBUG", None):
        return logging.DEBUG

    name = getenv("VIEWSPACE_LOG_LEVEL", None)
    if name is None:
        return None
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _log_level_from_string(level: str) -> int:
    """Convert a log level string to a logging level integer.

    VIEWSPACE_DEBUG overrides to DEBUG level.
    """
    if getenv("VIEWSPACE_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def _ensure_stderr_handler() -> None:
    """Attach the stderr handler to the ``viewspace`` logger once.

    An unset level on that logger defaults to the environment level (INFO
    unless configured), so info events are visible out of the box.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if any(isinstance(handler, _StderrHandler) for handler in root.handlers):
        return
    root.addHandler(_StderrHandler())
    if root.level == logging.NOTSET:
        root.setLevel(_get_log_level())


def create_logger(
    name: str = ROOT_LOGGER,
    *,
    level: str | None = None,
    log_format: LogFormatType = "text",
    log_file: str | Path | None = None,
    max_bytes: int = 0,
    backup_count: int = 0,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a structlog logger backed by the stdlib logger ``name``.

    The log level is determined by (in order of precedence):
    1. VIEWSPACE_DEBUG environment variable (if set, enables DEBUG level)
    2. The ``level`` parameter (if provided)
    3. VIEWSPACE_LOG_LEVEL environment variable
    4. Whatever level the stdlib logger hierarchy already has

    Only levels from 1-3 are written to the stdlib logger. Events are
    filtered against the stdlib logger before rendering, so levels the host
    sets later take effect immediately.

    Args:
        name: Name of the stdlib logger events are emitted through.
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Optional file to write to, in addition to stderr.
        max_bytes: Rotate ``log_file`` after this many bytes (0 disables).
        backup_count: Number of rotated files to keep.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    explicit_level = (
        _log_level_from_string(level) if level is not None else _env_log_level()
    )

    _ensure_stderr_handler()
    stdlib_logger = logging.getLogger(name)
    if explicit_level is not None:
        stdlib_logger.setLevel(explicit_level)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count
        )
        # structlog renders the event, the handler only writes it
        handler.setFormatter(logging.Formatter("%(message)s"))
        stdlib_logger.addHandler(handler)

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(
        explicit_level if explicit_level is not None else logging.NOTSET
    )

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            stdlib_logger,
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def get_logger(name: str) -> "FilteringBoundLogger":  # noqa: UP037
    """Return a text logger for a viewspace module, configured from the env."""
    return create_logger(name)
