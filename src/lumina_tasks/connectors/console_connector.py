# src/lumina_tasks/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.bootstrap import AppContext
from ..cli.commands import PUBLIC_COMMANDS, add_text_task, cmd_list
from ..cli.commands import registry as command_registry
from ..llm.client import friendly_llm_error_message

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _command_name(line: str) -> str:
    parts = line[1:].split()
    return parts[0].lower() if parts else ""


def handle_line(app: AppContext, line: str, emit=None) -> str | None:
    """
    Route one line of console input.

    - "/command ..." -> command registry
    - anything else -> new task from free text
    Task commands require a signed-in user.
    """
    line = line.strip()
    if not line:
        return None

    if app.state.user is None:
        if not line.startswith("/") or _command_name(line) not in PUBLIC_COMMANDS:
            return "Please sign in first: /login <email> <password> (or /signup <email> <password> <name>)."

    if line.startswith("/"):
        return command_registry.handle(app, line, emit=emit)

    return add_text_task(app, line, emit)


def run_console_loop(app: AppContext) -> None:
    logger.info("Console connector started (offline=%s).", app.offline)
    name = str(getattr(app.settings, "app_name", "Lumina Tasks"))
    _print_ts(f"[{name}] Type a task to add it. Use /help for commands. Use /exit to quit.\n")

    if app.offline:
        _print_ts("[AI] Offline mode: set LUMINA_OPENROUTER_API_KEY to enable the AI service.")

    if app.state.user is None:
        _print_ts("Sign in with /login <email> <password> or /signup <email> <password> <name>.")
    else:
        _print_ts(f"Hello, {app.state.user.display_name}!")
        _print_ts(cmd_list(app, []))

    def emit(text: str) -> None:
        # Immediate feedback while waiting on the AI service.
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = handle_line(app, user_input, emit=emit)
        except RuntimeError as e:
            msg = friendly_llm_error_message(e)
            logger.info("Runtime error: %s", msg)
            response = msg
        except Exception:
            logger.exception("Console handler crashed.")
            response = "Internal error while handling that input."

        if response is not None:
            _print_ts(response)

    logger.info("Console connector finished.")
