# src/lumina_tasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the app (state loaded from the local store),
runs the console REPL and persists the state on the way out.
"""

from __future__ import annotations

import logging
import signal

from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from .bootstrap import AppContext, create_app

logger = logging.getLogger(__name__)


def _shutdown(app: AppContext) -> None:
    """Best-effort final persist (no exceptions should escape)."""
    try:
        app.manager.close(app.persistence)
    except Exception:
        logger.exception("Failed to persist state on shutdown.")


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    file_level = getattr(logging, level_name, logging.INFO)
    log_file = setup_logging(log_dir=settings.log_dir, file_level=file_level)

    logger.info("Starting %s (log file: %s)...", settings.app_name, log_file)

    app = create_app(settings=settings)

    def _handle_sigterm(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        raise SystemExit(0)

    try:
        signal.signal(signal.SIGTERM, _handle_sigterm)
    except (ValueError, OSError):
        # Not on the main thread, or the platform has no SIGTERM.
        logger.debug("SIGTERM handler not installed.", exc_info=True)

    try:
        run_console_loop(app)
    finally:
        _shutdown(app)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
