# src/course_planner/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..planner.progress import streak_stats

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def run_console_loop(state: AppState, read_line: Callable[[str], str] = input) -> None:
    logger.info("Console connector started (namespace=%s).", state.namespace)
    _print_ts("[CONSOLE] Type /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback while a command runs
        print(f"[{_ts_local()}] {text}", flush=True)

    done_today = streak_stats(state.tasks.history).completed_today

    def on_completion_change(_completed: frozenset[str], history: dict[str, str]) -> None:
        nonlocal done_today
        stats = streak_stats(history)
        if stats.completed_today and not done_today:
            emit(f"First task of the day done. Streak: {stats.streak} day(s).")
        done_today = stats.completed_today

    unsubscribe = state.tasks.subscribe(on_completion_change)
    try:
        while True:
            try:
                user_input = read_line(">>> ").strip()
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

            if not user_input.startswith("/"):
                _print_ts("Commands start with '/'. Use /help to list them.")
                continue

            try:
                reply = command_registry.handle(state, user_input, emit=emit)
            except ValueError as e:
                reply = f"Error: {e}"
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is not None:
                _print_ts(reply)
    finally:
        unsubscribe()

    logger.info("Console connector finished.")
