"""Logging setup for processes that embed the store: console + rotating file.

Call ``setup_logging()`` once at startup. Library modules only use
``logging.getLogger(__name__)`` and never configure handlers themselves.
"""

from __future__ import annotations

import atexit
import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path

from sessionstore.log_context import ContextFilter

MAX_BYTES = 2 * 1024 * 1024  # 2 MB per file
BACKUP_COUNT = 3
LOG_FILE_NAME = "sessionstore.log"

CONSOLE_FMT = "%(asctime)s %(levelname)s %(name)s: %(ctx)s%(message)s"
FILE_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(ctx)s%(message)s"
DATE_FMT = "%H:%M:%S"
FILE_DATE_FMT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO.
QUIET_LOGGERS = ("aiohttp.access", "aiohttp.server")

logger = logging.getLogger(__name__)

_LEVEL_COLORS = {
    "DEBUG": "\x1b[36m",
    "INFO": "\x1b[32m",
    "WARNING": "\x1b[33m",
    "ERROR": "\x1b[31m",
    "CRITICAL": "\x1b[35m",
}
_RESET = "\x1b[0m"

_listener: QueueListener | None = None


def _stop_listener() -> None:
    global _listener  # noqa: PLW0603
    if _listener is not None:
        _listener.stop()
        _listener = None


atexit.register(_stop_listener)


class _LevelColorFormatter(logging.Formatter):
    """Pads level names and colors them when writing to a terminal."""

    def __init__(self, fmt: str, datefmt: str | None = None, *, use_color: bool = True) -> None:
        super().__init__(fmt, datefmt)
        self._use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        padded = f"{levelname:<8}"
        if self._use_color:
            padded = f"{_LEVEL_COLORS.get(levelname, '')}{padded}{_RESET}"
        record.levelname = padded
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def parse_level(name: str) -> int:
    """Map a config level name (``"info"``, ``"DEBUG"``) to a logging level."""
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _console_handler(level: int, ctx_filter: logging.Filter) -> logging.Handler | None:
    if sys.stderr is None:
        return None
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(ctx_filter)
    is_tty = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
    handler.setFormatter(_LevelColorFormatter(CONSOLE_FMT, DATE_FMT, use_color=is_tty))
    return handler


def _file_queue_handler(log_dir: Path, ctx_filter: logging.Filter) -> logging.Handler:
    """Start a listener thread writing ``sessionstore.log`` and return its queue handler.

    Request threads only enqueue records; the listener does the disk writes.
    """
    global _listener  # noqa: PLW0603

    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FMT, datefmt=FILE_DATE_FMT))

    records: queue.Queue[logging.LogRecord] = queue.Queue()
    handler = QueueHandler(records)
    handler.setLevel(logging.DEBUG)
    handler.addFilter(ctx_filter)

    _listener = QueueListener(records, file_handler, respect_handler_level=True)
    _listener.start()
    return handler


def setup_logging(
    level: int = logging.INFO,
    verbose: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Configure the root logger with a console handler and optional file output.

    Args:
        level: Minimum log level for the console.
        verbose: Forces DEBUG regardless of *level*.
        log_dir: Directory for ``sessionstore.log`` (``StoreConfig.log_directory``).
            File logging is skipped when None.
    """
    if verbose:
        level = logging.DEBUG

    _stop_listener()
    ctx_filter = ContextFilter()

    root = logging.getLogger()
    root.handlers.clear()
    # The file keeps DEBUG records even when the console is quieter.
    root.setLevel(level if log_dir is None else min(level, logging.DEBUG))

    console = _console_handler(level, ctx_filter)
    if console is not None:
        root.addHandler(console)
    if log_dir is not None:
        root.addHandler(_file_queue_handler(log_dir, ctx_filter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging initialized (level=%s)", logging.getLevelName(level))
