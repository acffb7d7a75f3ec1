# src/course_planner/storage/scheduler.py

from __future__ import annotations

"""
Debounce schedulers.

Both implementations keep at most one pending callback per key and
cancel the previous one on reschedule. Callback exceptions are logged,
never propagated into the timer machinery.
"""

import asyncio
import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


def _run_safely(key: str, callback: Callable[[], None]) -> None:
    try:
        callback()
    except Exception:
        logger.exception("Scheduled write failed key=%s", key)


class ThreadTimerScheduler:
    """
    threading.Timer-based scheduler for synchronous hosts (console REPL).

    Callbacks run on the timer thread; callers that touch shared state from
    the callback must guard it (DurableStore does).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: dict[str, threading.Timer] = {}

    def schedule(self, key: str, callback: Callable[[], None], delay: float) -> None:
        def fire() -> None:
            with self._lock:
                # A newer schedule() may have replaced us between firing and locking.
                if self._timers.get(key) is not timer:
                    return
                del self._timers[key]
            _run_safely(key, callback)

        timer = threading.Timer(max(0.0, float(delay)), fire)
        timer.daemon = True
        with self._lock:
            old = self._timers.get(key)
            if old is not None:
                old.cancel()
            self._timers[key] = timer
        timer.start()

    def cancel(self, key: str) -> None:
        with self._lock:
            timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for t in timers:
            t.cancel()

    def pending_keys(self) -> list[str]:
        with self._lock:
            return sorted(self._timers)


class AsyncioScheduler:
    """
    loop.call_later-based scheduler for hosts that already run an event loop.

    Must be used from the loop's thread.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handles: dict[str, asyncio.TimerHandle] = {}

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, key: str, callback: Callable[[], None], delay: float) -> None:
        old = self._handles.pop(key, None)
        if old is not None:
            old.cancel()

        def fire() -> None:
            self._handles.pop(key, None)
            _run_safely(key, callback)

        self._handles[key] = self._get_loop().call_later(max(0.0, float(delay)), fire)

    def cancel(self, key: str) -> None:
        handle = self._handles.pop(key, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    def pending_keys(self) -> list[str]:
        return sorted(self._handles)
