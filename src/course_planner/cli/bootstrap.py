# src/course_planner/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- opens the storage backend and the write scheduler,
- wires the durable slots and managers into AppState.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..config import get_settings
from ..core.notify import LoggingNotifier
from ..core.ports import KeyValueStorage, NotificationSink, WriteScheduler
from ..core.state import (
    SLOT_COMPLETED,
    SLOT_COURSES,
    SLOT_HISTORY,
    SLOT_LAST_BACKUP,
    AppState,
    slot_key,
)
from ..planner.course_tree import CourseTreeManager, short_id
from ..planner.models import Course
from ..planner.seed import initial_completed_task_ids, seed_courses
from ..planner.task_state import TaskStateManager, iso_timestamp, utc_now
from ..storage import schemas
from ..storage.backends import open_storage
from ..storage.durable import DurableStore
from ..storage.scheduler import ThreadTimerScheduler

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if settings.storage_backend == "sqlite":
        settings.storage_path.parent.mkdir(parents=True, exist_ok=True)
    elif settings.storage_backend == "file":
        settings.storage_path.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    storage: KeyValueStorage | None = None,
    scheduler: WriteScheduler | None = None,
    notifier: NotificationSink | None = None,
    clock: Callable[[], datetime] = utc_now,
    id_factory: Callable[[], str] = short_id,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and every port injectable makes the app easy to test and
    lets several planners coexist. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if storage is None:
        _ensure_local_dirs(settings)
        storage = open_storage(
            settings.storage_backend,
            settings.storage_path,
            quota_bytes=getattr(settings, "storage_quota_bytes", 0),
        )
    if scheduler is None:
        scheduler = ThreadTimerScheduler()
    if notifier is None:
        notifier = LoggingNotifier()

    namespace = getattr(settings, "namespace", "planner")
    delay = float(getattr(settings, "write_debounce_ms", 500)) / 1000.0
    seed = bool(getattr(settings, "seed_on_first_run", True))

    def slot(name: str, default: Any, schema: Any) -> DurableStore[Any]:
        return DurableStore(
            storage,
            slot_key(namespace, name),
            default=default,
            scheduler=scheduler,
            schema=schema,
            delay=delay,
            notifier=notifier,
        )

    def default_courses() -> list[Course]:
        return seed_courses() if seed else []

    def default_completed() -> list[str]:
        return initial_completed_task_ids(seed_courses()) if seed else []

    def default_history() -> dict[str, str]:
        # Seed completions get a stamp so the first load is already consistent.
        if not seed:
            return {}
        stamp = iso_timestamp(clock())
        return {tid: stamp for tid in initial_completed_task_ids(seed_courses())}

    slots: dict[str, DurableStore[Any]] = {
        SLOT_COURSES: slot(SLOT_COURSES, default_courses, schemas.COURSES),
        SLOT_COMPLETED: slot(SLOT_COMPLETED, default_completed, schemas.COMPLETED_TASK_IDS),
        SLOT_HISTORY: slot(SLOT_HISTORY, default_history, schemas.COMPLETION_HISTORY),
        SLOT_LAST_BACKUP: slot(SLOT_LAST_BACKUP, None, schemas.LAST_BACKUP),
    }

    courses = CourseTreeManager(slots[SLOT_COURSES], id_factory=id_factory)
    tasks = TaskStateManager(
        slots[SLOT_COMPLETED],
        slots[SLOT_HISTORY],
        undo_limit=int(getattr(settings, "undo_limit", 20)),
        clock=clock,
    )

    state = AppState(
        settings=settings,
        storage=storage,
        scheduler=scheduler,
        notifier=notifier,
        namespace=namespace,
        courses=courses,
        tasks=tasks,
        last_backup=slots[SLOT_LAST_BACKUP],
        slots=slots,
    )
    logger.info("Planner state ready namespace=%s", namespace)
    return state


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown: persist pending writes, stop timers (no exceptions escape)."""
    for name, store in state.slots.items():
        try:
            store.flush()
        except Exception:
            logger.exception("Failed to flush slot=%s", name)
    try:
        state.scheduler.cancel_all()
    except Exception:
        logger.debug("Scheduler cancel_all failed.", exc_info=True)
