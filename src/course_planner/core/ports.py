# src/course_planner/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The managers depend on Protocols instead of concrete implementations.
This keeps storage media, timers and the notification surface swappable
and makes testing easier (in-memory storage, manual scheduler, recording sink).
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")


class KeyValueStorage(Protocol):
    """
    Persistent key-value medium.

    Values are opaque bytes; None means "no value stored".
    Backends raise StorageQuotaExceeded when the medium is full.
    """

    def get(self, key: str) -> bytes | None: ...
    def set(self, key: str, value: bytes) -> None: ...
    def delete(self, key: str) -> None: ...


class WriteScheduler(Protocol):
    """
    Deferred-callback port used for debounced writes.

    schedule() replaces any callback already pending for the same key
    (cancel-on-reschedule), so at most one callback per key is pending.
    """

    def schedule(self, key: str, callback: Callable[[], None], delay: float) -> None: ...
    def cancel(self, key: str) -> None: ...
    def cancel_all(self) -> None: ...


@dataclass(frozen=True, slots=True)
class Validation(Generic[T]):
    """Result of Schema.validate(): either a value or an error message."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Schema(Protocol[T]):
    """Typed validation interface for one persisted slot."""

    def validate(self, raw: Any) -> Validation[T]: ...
    def dump(self, value: T) -> Any: ...


class NotificationLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    message: str
    level: NotificationLevel = NotificationLevel.INFO


class NotificationSink(Protocol):
    """
    User-visible event sink (toasts in a UI, a printed line in the console).

    Fire-and-forget: the core never waits on it and never depends on its result.
    """

    def notify(self, notification: Notification) -> None: ...
