"""Logging helpers for the notesync backend.

All loggers live under the ``notesync`` namespace so a single call to
:func:`setup_logging` configures the whole service.
"""

import logging
import sys

ROOT_LOGGER_NAME = "notesync"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

_HANDLER_MARKER = "_notesync_handler"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``notesync`` logger with a single stream handler.

    Safe to call more than once; the handler is only installed the first
    time. Unknown level names fall back to INFO.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logger.setLevel(numeric_level)

    if not any(getattr(h, _HANDLER_MARKER, False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        setattr(handler, _HANDLER_MARKER, True)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under ``notesync``."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_sync_operation(
    user_id: str,
    direction: str,
    succeeded: bool,
    error: str | None = None,
    **counts: int | None,
) -> None:
    """Emit one summary line for a push or pull attempt."""
    logger = get_logger("notesync.sync")
    parts = [f"{key}={value}" for key, value in counts.items() if value is not None]
    summary = " ".join(parts)
    if succeeded:
        logger.info(f"{direction.upper()} OK | {user_id} | {summary}".rstrip(" |"))
    else:
        logger.warning(f"{direction.upper()} FAILED | {user_id} | {summary} | error={error}")
