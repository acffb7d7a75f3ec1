# src/course_planner/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..planner.course_tree import CourseTreeManager
from ..planner.task_state import TaskStateManager
from ..storage.durable import DurableStore
from .ports import KeyValueStorage, NotificationSink, WriteScheduler

SLOT_COURSES = "courses"
SLOT_COMPLETED = "completed-task-ids"
SLOT_HISTORY = "completion-history"
SLOT_LAST_BACKUP = "last-backup"


def slot_key(namespace: str, slot: str) -> str:
    return f"{namespace}:{slot}"


@dataclass
class AppState:
    """
    Explicit handle to one planner profile.

    Everything that reads or mutates planner data receives this object;
    there is no module-level state, so several instances (tests, two
    namespaces) can coexist.
    """

    # Settings object (config.Settings or a test double with the same attributes).
    settings: Any

    storage: KeyValueStorage
    scheduler: WriteScheduler
    notifier: NotificationSink
    namespace: str

    courses: CourseTreeManager
    tasks: TaskStateManager
    last_backup: DurableStore[str | None]

    slots: dict[str, DurableStore[Any]] = field(default_factory=dict)
