# src/course_planner/planner/task_state.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from ..storage.durable import DurableStore

logger = logging.getLogger(__name__)

DEFAULT_UNDO_LIMIT = 20

Listener = Callable[[frozenset[str], dict[str, str]], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(dt: datetime) -> str:
    """Format as 2025-01-31T09:15:00.000Z (what browsers' toISOString() produce)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TaskStateManager:
    """
    Completed-task set + completion history + bounded undo stack.

    Invariant after every public call:
        task_id in completed  <=>  task_id in history

    The two persisted slots are written back-to-back and listeners are only
    called once both hold the new state, so no observer sees them disagree.
    The undo stack lives in memory only.
    """

    def __init__(
        self,
        completed_store: DurableStore[list[str]],
        history_store: DurableStore[dict[str, str]],
        *,
        undo_limit: int = DEFAULT_UNDO_LIMIT,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._completed_store = completed_store
        self._history_store = history_store
        self._undo_limit = max(1, int(undo_limit))
        self._clock = clock

        self._undo: list[frozenset[str]] = []
        # Timestamps of ids un-completed by toggle(), kept while an undo
        # snapshot could bring them back.
        self._retired: dict[str, str] = {}
        self._listeners: list[Listener] = []

        self._completed, self._history = self._load()

    # ---- internal ----

    def _now(self) -> str:
        return iso_timestamp(self._clock())

    def _reconcile(
        self, ids: Iterable[str], history: dict[str, str]
    ) -> tuple[frozenset[str], dict[str, str], bool]:
        completed = frozenset(ids)
        fixed = {k: v for k, v in history.items() if k in completed}
        missing = [tid for tid in completed if tid not in fixed]
        if missing:
            stamp = self._now()
            for tid in missing:
                fixed[tid] = stamp
            logger.warning(
                "Completion history missing for %d task(s); stamped with %s", len(missing), stamp
            )
        dropped = len(history) - (len(fixed) - len(missing))
        if dropped:
            logger.warning("Dropped %d history entr(ies) for tasks that are not completed", dropped)
        return completed, fixed, bool(missing or dropped)

    def _load(self) -> tuple[frozenset[str], dict[str, str]]:
        ids = self._completed_store.read()
        history = self._history_store.read()
        completed, fixed, changed = self._reconcile(ids, dict(history))
        if changed or len(completed) != len(ids):
            self._completed_store.write(sorted(completed))
            self._history_store.write(fixed)
        logger.info("Task state loaded completed=%d", len(completed))
        return completed, fixed

    def _commit(self, completed: frozenset[str], history: dict[str, str]) -> None:
        self._completed = completed
        self._history = history
        self._completed_store.write(sorted(completed))
        self._history_store.write(dict(history))
        self._notify_listeners()

    def _notify_listeners(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._completed, dict(self._history))
            except Exception:
                logger.exception("Task state listener failed")

    def _push_undo(self, snapshot: frozenset[str]) -> None:
        self._undo.append(snapshot)
        if len(self._undo) > self._undo_limit:
            del self._undo[: len(self._undo) - self._undo_limit]
        self._prune_retired()

    def _prune_retired(self) -> None:
        if not self._retired:
            return
        referenced: set[str] = set().union(*self._undo) if self._undo else set()
        self._retired = {k: v for k, v in self._retired.items() if k in referenced}

    # ---- queries ----

    @property
    def completed(self) -> frozenset[str]:
        return self._completed

    @property
    def history(self) -> dict[str, str]:
        return dict(self._history)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def undo_limit(self) -> int:
        return self._undo_limit

    def is_completed(self, task_id: str) -> bool:
        return task_id in self._completed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reload(self) -> None:
        """Re-read both slots (after they were rebound to another key). Clears undo."""
        self._undo.clear()
        self._retired.clear()
        self._completed, self._history = self._load()
        self._notify_listeners()

    # ---- operations ----

    def toggle(self, task_id: str) -> bool:
        """Flip completion of task_id. Returns the new completion state."""
        if not task_id:
            raise ValueError("task_id is required")

        before = self._completed
        history = dict(self._history)

        if task_id in before:
            stamp = history.pop(task_id, None)
            if stamp is not None:
                self._retired[task_id] = stamp
            completed = before - {task_id}
            done = False
        else:
            history[task_id] = self._now()
            completed = before | {task_id}
            done = True

        self._push_undo(before)
        self._commit(completed, history)
        logger.debug("Toggled task=%s completed=%s undo_depth=%d", task_id, done, len(self._undo))
        return done

    def undo(self) -> bool:
        """Restore the previous completed set. Returns False when there is nothing to undo."""
        if not self._undo:
            return False

        restored = self._undo.pop()
        history = {k: v for k, v in self._history.items() if k in restored}
        for tid in restored:
            if tid in history:
                continue
            stamp = self._retired.get(tid)
            if stamp is None:
                stamp = self._now()
                logger.debug("No recorded completion time for task=%s; using now", tid)
            history[tid] = stamp

        self._commit(restored, history)
        self._prune_retired()
        logger.debug("Undo applied completed=%d undo_depth=%d", len(restored), len(self._undo))
        return True

    def hydrate(self, task_ids: Iterable[str], history: dict[str, str]) -> None:
        """Bulk replace (import). Clears undo: imported state cannot be undone into the old one."""
        completed, fixed, _ = self._reconcile(task_ids, dict(history))
        self._undo.clear()
        self._retired.clear()
        self._commit(completed, fixed)
        logger.info("Task state hydrated completed=%d", len(completed))

    def forget(self, task_ids: Iterable[str]) -> int:
        """
        Remove ids from the completed set, the history and every undo snapshot.

        Not undoable. Returns how many completed ids were removed.
        """
        drop = frozenset(task_ids)
        if not drop:
            return 0

        self._undo = [snap - drop for snap in self._undo]
        for tid in drop:
            self._retired.pop(tid, None)

        removed = len(self._completed & drop)
        if removed or any(k in drop for k in self._history):
            history = {k: v for k, v in self._history.items() if k not in drop}
            self._commit(self._completed - drop, history)
        logger.debug("Forgot %d completed task id(s)", removed)
        return removed
