# tests/fakes.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from course_planner.core.ports import Notification, NotificationLevel
from course_planner.storage.backends import MemoryStorage


class ManualScheduler:
    """
    WriteScheduler that never fires on its own.

    Tests call run_pending() to play the role of "the debounce window elapsed".
    Same cancel-on-reschedule semantics as the real schedulers.
    """

    def __init__(self) -> None:
        self.pending: dict[str, tuple[Callable[[], None], float]] = {}
        self.scheduled_count = 0

    def schedule(self, key: str, callback: Callable[[], None], delay: float) -> None:
        self.pending[key] = (callback, delay)
        self.scheduled_count += 1

    def cancel(self, key: str) -> None:
        self.pending.pop(key, None)

    def cancel_all(self) -> None:
        self.pending.clear()

    def run_pending(self) -> int:
        jobs = list(self.pending.values())
        self.pending.clear()
        for callback, _delay in jobs:
            callback()
        return len(jobs)


@dataclass(slots=True)
class RecordingNotifier:
    """NotificationSink that keeps everything it receives."""

    received: list[Notification] = field(default_factory=list)

    def notify(self, notification: Notification) -> None:
        self.received.append(notification)

    def messages(self, level: NotificationLevel | None = None) -> list[str]:
        return [n.message for n in self.received if level is None or n.level == level]


class CountingStorage(MemoryStorage):
    """MemoryStorage that counts physical writes."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.set_calls: list[str] = []

    def set(self, key: str, value: bytes) -> None:
        super().set(key, value)
        self.set_calls.append(key)


class FakeClock:
    """Deterministic clock; every call advances by `step`."""

    def __init__(
        self,
        start: datetime = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc),
        step: timedelta = timedelta(minutes=1),
    ) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


class SequentialIds:
    def __init__(self) -> None:
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"id{self.n}"
