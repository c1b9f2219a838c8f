# src/lumina_tasks/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from logging.handlers import RotatingFileHandler
from pathlib import Path

APP_LOGGER = "lumina_tasks"
LOG_FILE_NAME = "lumina.log"

# Libraries that log every request at INFO/DEBUG.
NOISY_LOGGERS = ("httpx", "httpcore", "openai")

_CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable: our own records pass (subject to the handler level),
    everything else reaches the console only at ERROR+.
    """

    def __init__(self, app_logger: str = APP_LOGGER) -> None:
        super().__init__()
        self._prefix = app_logger + "."
        self._app = app_logger

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == self._app or record.name.startswith(self._prefix):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/lumina",
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
    quiet: Iterable[str] = NOISY_LOGGERS,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> Path:
    """
    Install a console handler (short format, filtered) and a size-rotated file
    handler under `log_dir`. Existing root handlers are replaced, so call it
    once at startup. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    # warnings.warn(...) -> 'py.warnings' logger
    logging.captureWarnings(True)

    return log_file
