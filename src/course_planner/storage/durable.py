# src/course_planner/storage/durable.py

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from ..core.notify import emit
from ..core.ports import (
    KeyValueStorage,
    NotificationLevel,
    NotificationSink,
    Schema,
    WriteScheduler,
)
from .backends import StorageError, StorageQuotaExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DEBOUNCE_SECONDS = 0.5

_NOTHING: Any = object()


class DurableStore(Generic[T]):
    """
    One named slot of a key-value medium, held in memory and persisted lazily.

    - read(): first call loads + validates; absent/corrupt data -> default
    - write(): updates memory now, schedules a debounced physical write
    - flush(): performs the pending write immediately
    - rebind(): moves the slot to another key without cross-writing

    Persistence failures never propagate to callers: the slot degrades to
    "in memory only" and the failure is logged (quota errors are also
    reported through the notification sink).
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str,
        *,
        default: T | Callable[[], T],
        scheduler: WriteScheduler,
        schema: Schema[T] | None = None,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        notifier: NotificationSink | None = None,
    ) -> None:
        self._storage = storage
        self._key = key
        self._default = default
        self._scheduler = scheduler
        self._schema = schema
        self._delay = max(0.0, float(delay))
        self._notifier = notifier

        self._lock = threading.RLock()
        self._value: Any = _NOTHING
        self._pending: Any = _NOTHING

    @property
    def key(self) -> str:
        return self._key

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not _NOTHING

    # ---- read path ----

    def _make_default(self) -> T:
        d = self._default
        return d() if callable(d) else d  # type: ignore[return-value]

    def _load(self) -> T:
        try:
            raw = self._storage.get(self._key)
        except StorageError:
            logger.warning("Failed to read key=%s; using default", self._key, exc_info=True)
            return self._make_default()

        if raw is None:
            logger.debug("No stored value for key=%s; using default", self._key)
            return self._make_default()

        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning("Corrupt JSON for key=%s (%s); using default", self._key, e)
            return self._make_default()

        if self._schema is None:
            return data

        result = self._schema.validate(data)
        if not result.ok:
            logger.warning(
                "Stored value for key=%s failed validation (%s); using default",
                self._key,
                result.error,
            )
            return self._make_default()
        return result.value  # type: ignore[return-value]

    def read(self) -> T:
        with self._lock:
            if self._value is _NOTHING:
                self._value = self._load()
            return self._value

    # ---- write path ----

    def write(self, value: T) -> None:
        with self._lock:
            self._value = value
            self._pending = value
            self._scheduler.schedule(self._key, self._on_timer, self._delay)

    def _on_timer(self) -> None:
        # Held across the I/O so a concurrent flush() cannot be overtaken by an older value.
        with self._lock:
            self._persist(self._take_pending())

    def _take_pending(self) -> Any:
        with self._lock:
            value, self._pending = self._pending, _NOTHING
            return value

    def flush(self) -> None:
        with self._lock:
            self._scheduler.cancel(self._key)
            self._persist(self._take_pending())

    def _encode(self, value: Any) -> bytes | None:
        """Dump + re-validate; None means "do not persist this"."""
        try:
            data = self._schema.dump(value) if self._schema is not None else value
            if self._schema is not None:
                check = self._schema.validate(data)
                if not check.ok:
                    logger.warning(
                        "Refusing to persist invalid value for key=%s (%s)", self._key, check.error
                    )
                    return None
            return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            logger.warning("Refusing to persist unserializable value for key=%s (%s)", self._key, e)
            return None

    def _persist(self, value: Any) -> None:
        if value is _NOTHING:
            return

        payload = self._encode(value)
        if payload is None:
            return

        key = self._key
        try:
            current = self._storage.get(key)
        except StorageError:
            logger.debug("Could not read key=%s before write; writing anyway", key, exc_info=True)
            current = None
        if current == payload:
            logger.debug("Skip write key=%s (unchanged)", key)
            return

        try:
            self._storage.set(key, payload)
            logger.debug("Persisted key=%s bytes=%d", key, len(payload))
        except StorageQuotaExceeded:
            logger.error("Storage quota exceeded for key=%s; write dropped", key)
            emit(
                self._notifier,
                "Storage is full: latest changes are kept in memory but were not saved.",
                NotificationLevel.ERROR,
            )
        except StorageError:
            logger.warning("Failed to write key=%s; write dropped", key, exc_info=True)

    # ---- key changes ----

    def rebind(self, key: str) -> T:
        """
        Point this slot at another key and reload from it.

        A pending write belongs to the old key: it is flushed there first and
        its timer cancelled, so it can never land on the new key.
        """
        with self._lock:
            if key == self._key:
                return self.read()
            self.flush()
            old = self._key
            self._key = key
            self._value = _NOTHING
            logger.info("Slot rebound %s -> %s", old, key)
            return self.read()

    def reset(self) -> None:
        """Drop the cached value so the next read() reloads from storage."""
        with self._lock:
            self._scheduler.cancel(self._key)
            self._pending = _NOTHING
            self._value = _NOTHING

    def __repr__(self) -> str:
        return f"DurableStore(key={self._key!r}, schema={self._schema!r})"
