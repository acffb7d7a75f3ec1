# src/course_planner/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, runs the console REPL and flushes
pending writes on the way out.
"""

from __future__ import annotations

import logging
import signal

from ..cli.bootstrap import create_initial_state, shutdown_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.notify import ConsoleNotifier
from ..logging_setup import setup_logging
from ..planner.backup import backup_status

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings, notifier=ConsoleNotifier())

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        raise KeyboardInterrupt

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError, AttributeError):
        # Not in the main thread, or the platform has no SIGTERM.
        pass

    if backup_status(state).should_remind:
        logger.info("No recent backup; use /export <path.json> to save one.")

    try:
        run_console_loop(state)
    finally:
        shutdown_state(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
