# src/course_planner/core/notify.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from .ports import Notification, NotificationLevel, NotificationSink

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


def emit(
    sink: NotificationSink | None,
    message: str,
    level: NotificationLevel = NotificationLevel.INFO,
) -> None:
    """
    Send a notification without letting the sink break the caller.

    Persistence and import paths call this from places where an exception
    would turn a recoverable failure into a crash.
    """
    if sink is None:
        return
    try:
        sink.notify(Notification(message=message, level=level))
    except Exception:
        logger.exception("Notification sink failed level=%s message=%r", level.value, message)


class LoggingNotifier:
    """Sink that only writes notifications to the log (headless runs)."""

    def notify(self, notification: Notification) -> None:
        logger.log(
            _LOG_LEVELS.get(notification.level, logging.INFO),
            "[%s] %s",
            notification.level.value,
            notification.message,
        )


class ConsoleNotifier:
    """Print notifications as timestamped console lines."""

    def __init__(self, write: Callable[[str], None] = print) -> None:
        self._write = write

    def notify(self, notification: Notification) -> None:
        ts = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")
        self._write(f"[{ts}] [{notification.level.value.upper()}] {notification.message}")
