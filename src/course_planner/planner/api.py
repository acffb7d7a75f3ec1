# src/course_planner/planner/api.py

from __future__ import annotations

import logging

from ..core.notify import emit
from ..core.ports import NotificationLevel
from ..core.state import AppState, slot_key
from .models import Course, TaskStatus
from .progress import is_course_complete

logger = logging.getLogger(__name__)


def toggle_task(state: AppState, task_id: str) -> bool:
    """
    Toggle completion and keep the kanban column in step with it.

    Completing the last open task of a course emits a success notification.
    Returns the new completion state.
    """
    done = state.tasks.toggle(task_id)
    state.courses.set_task_status(task_id, TaskStatus.DONE if done else TaskStatus.TODO)

    if done:
        found = state.courses.find_task(task_id)
        if found is not None:
            course = found[0]
            if is_course_complete(course, state.tasks.completed):
                logger.info("Course completed id=%s", course.id)
                emit(
                    state.notifier,
                    f"Course {course.code} ({course.title}) completed!",
                    NotificationLevel.SUCCESS,
                )
    return done


def update_task_status(state: AppState, task_id: str, status: TaskStatus | str) -> bool:
    """
    Move a task to a kanban column.

    "done" marks the task completed, any other column un-completes it. The
    requested column is kept (moving a finished task to "review" leaves it in
    review). Returns False when the task does not exist.
    """
    new_status = TaskStatus.parse(status)
    if not state.courses.set_task_status(task_id, new_status):
        return False

    completed = state.tasks.is_completed(task_id)
    if new_status == TaskStatus.DONE and not completed:
        state.tasks.toggle(task_id)
    elif new_status != TaskStatus.DONE and completed:
        state.tasks.toggle(task_id)
    return True


def undo(state: AppState) -> bool:
    """Undo the last completion change and move affected tasks to the matching column."""
    before = state.tasks.completed
    if not state.tasks.undo():
        return False

    after = state.tasks.completed
    for task_id in sorted(before - after):
        state.courses.set_task_status(task_id, TaskStatus.TODO)
    for task_id in sorted(after - before):
        state.courses.set_task_status(task_id, TaskStatus.DONE)
    return True


def delete_course(state: AppState, course_id: str) -> Course | None:
    """
    Delete a course (units, tasks and exams go with it).

    With settings.purge_orphans_on_delete the course's task ids are also
    dropped from the completed set, the history and the undo stack.
    """
    removed = state.courses.delete_course(course_id)
    if removed is None:
        return None

    if getattr(state.settings, "purge_orphans_on_delete", True):
        n = state.tasks.forget(t.id for t in removed.iter_tasks())
        logger.debug("Purged %d completed id(s) of deleted course=%s", n, course_id)
    return removed


def flush(state: AppState) -> None:
    """Write every pending slot now (shutdown, before export)."""
    for store in state.slots.values():
        store.flush()


def switch_namespace(state: AppState, namespace: str) -> None:
    """
    Point every slot at another namespace and reload the managers from it.

    Pending writes are flushed to the old namespace first.
    """
    namespace = (namespace or "").strip()
    if not namespace:
        raise ValueError("namespace is required")
    if namespace == state.namespace:
        return

    for name, store in state.slots.items():
        store.rebind(slot_key(namespace, name))

    logger.info("Namespace switched %s -> %s", state.namespace, namespace)
    state.namespace = namespace
    state.tasks.reload()
