# src/course_planner/planner/course_tree.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import TypeAdapter

from ..storage.durable import DurableStore
from .models import Course, Task, TaskStatus, Unit

logger = logging.getLogger(__name__)

_UNITS = TypeAdapter(list[Unit])

# Course fields patch_meta() must never touch.
_STRUCTURAL = {"id", "units"}

NEW_COURSE_CODE = "NEW"
NEW_COURSE_TITLE = "New Course"
NEW_COURSE_COLOR = "bg-pink-500"
NEW_COURSE_GRADIENT = "from-pink-500 to-rose-500"
NEW_UNIT_TITLE = "Unit 1"


def short_id() -> str:
    return uuid.uuid4().hex[:12]


def _field_name(key: str) -> str | None:
    """Map a course field given by attribute name or JSON alias to the attribute name."""
    if key in Course.model_fields:
        return key
    for name, info in Course.model_fields.items():
        if info.alias == key:
            return name
    return None


class CourseTreeManager:
    """
    Owns the ordered Course list (one persisted document).

    Every mutation is copy-on-write: a new list is published and only the
    touched course is rebuilt, so a value handed to the store for a pending
    write is never modified afterwards. Unit and task order is kept exactly
    as given unless an operation is explicitly about reordering.
    """

    def __init__(
        self,
        store: DurableStore[list[Course]],
        *,
        id_factory: Callable[[], str] = short_id,
    ) -> None:
        self._store = store
        self._new_id = id_factory
        courses = store.read()
        logger.info("Course tree loaded courses=%d", len(courses))

    # ---- internal ----

    def _publish(self, courses: list[Course]) -> None:
        self._store.write(courses)

    def _replace_course(self, course_id: str, fn: Callable[[Course], Course]) -> bool:
        courses = self._store.read()
        out: list[Course] = []
        hit = False
        for course in courses:
            if course.id == course_id:
                out.append(fn(course))
                hit = True
            else:
                out.append(course)
        if hit:
            self._publish(out)
        else:
            logger.debug("Course not found id=%s", course_id)
        return hit

    # ---- queries ----

    @property
    def courses(self) -> list[Course]:
        return list(self._store.read())

    def get_course(self, course_id: str) -> Course | None:
        for course in self._store.read():
            if course.id == course_id:
                return course
        return None

    def find_task(self, task_id: str) -> tuple[Course, Unit, Task] | None:
        for course in self._store.read():
            for unit in course.units:
                for task in unit.tasks:
                    if task.id == task_id:
                        return course, unit, task
        return None

    def task_ids(self, course_id: str | None = None) -> list[str]:
        out: list[str] = []
        for course in self._store.read():
            if course_id is not None and course.id != course_id:
                continue
            out.extend(t.id for t in course.iter_tasks())
        return out

    # ---- structural mutations ----

    def replace_all(self, courses: Iterable[Course | Mapping[str, Any]]) -> None:
        """Bulk replace the whole tree (import)."""
        validated = TypeAdapter(list[Course]).validate_python(list(courses))
        self._publish(validated)
        logger.info("Course tree replaced courses=%d", len(validated))

    def replace_units(self, course_id: str, units: Iterable[Unit | Mapping[str, Any]]) -> bool:
        """Replace one course's unit list (reorder, inline edits, deletions)."""
        new_units = _UNITS.validate_python(list(units))
        return self._replace_course(course_id, lambda c: c.model_copy(update={"units": new_units}))

    def patch_meta(self, course_id: str, fields: Mapping[str, Any]) -> bool:
        """
        Shallow-merge course-level fields (title, exams, color, ...).

        Keys may be attribute names or JSON aliases. id/units and unknown keys
        are ignored; values are validated and bad ones raise ValueError.
        """
        update: dict[str, Any] = {}
        for key, value in fields.items():
            name = _field_name(key)
            if name is None or name in _STRUCTURAL:
                logger.warning("patch_meta ignores field %r course=%s", key, course_id)
                continue
            update[name] = value
        if not update:
            return False

        def apply(course: Course) -> Course:
            merged = course.model_dump(exclude={"units"})
            merged.update(update)
            patched = Course.model_validate({**merged, "units": []})
            return patched.model_copy(update={"units": course.units})

        return self._replace_course(course_id, apply)

    def append_task(
        self,
        course_id: str,
        text: str,
        *,
        due_date: str | None = None,
        is_priority: bool | None = None,
        status: TaskStatus | str = TaskStatus.TODO,
        unit_id: str | None = None,
    ) -> Task | None:
        """
        Append a task to unit_id (when it exists in the course) or to the last unit.

        Returns the new task, or None when the course is missing or has no units.
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("task text is required")

        course = self.get_course(course_id)
        if course is None or not course.units:
            logger.info("append_task skipped: course=%s has no units", course_id)
            return None

        idx = len(course.units) - 1
        if unit_id is not None:
            for i, unit in enumerate(course.units):
                if unit.id == unit_id:
                    idx = i
                    break

        task = Task(
            id=f"{course_id}-custom-{self._new_id()}",
            text=text,
            due_date=due_date,
            is_priority=is_priority,
            status=TaskStatus.parse(status),
        )
        target = course.units[idx]
        units = list(course.units)
        units[idx] = target.model_copy(update={"tasks": [*target.tasks, task]})
        self._replace_course(course_id, lambda c: c.model_copy(update={"units": units}))
        logger.debug("Task appended id=%s course=%s unit=%d", task.id, course_id, idx)
        return task

    def _map_task(self, task_id: str, fn: Callable[[Task], Task]) -> bool:
        courses = self._store.read()
        for ci, course in enumerate(courses):
            for ui, unit in enumerate(course.units):
                for ti, task in enumerate(unit.tasks):
                    if task.id != task_id:
                        continue
                    tasks = list(unit.tasks)
                    tasks[ti] = fn(task)
                    units = list(course.units)
                    units[ui] = unit.model_copy(update={"tasks": tasks})
                    out = list(courses)
                    out[ci] = course.model_copy(update={"units": units})
                    self._publish(out)
                    return True
        return False

    def set_task_status(self, task_id: str, status: TaskStatus | str) -> bool:
        """Set the kanban status of a task anywhere in the tree; no-op if unknown."""
        new_status = TaskStatus.parse(status)
        hit = self._map_task(task_id, lambda t: t.model_copy(update={"status": new_status}))
        if not hit:
            logger.debug("set_task_status: task not found id=%s", task_id)
        return hit

    def update_task(self, task: Task) -> bool:
        """Replace the stored record of task.id with task (detail edits)."""
        task = Task.model_validate(task.model_dump())
        return self._map_task(task.id, lambda _old: task)

    def create_course(self) -> Course:
        course = Course(
            id=f"custom-{self._new_id()}",
            code=NEW_COURSE_CODE,
            title=NEW_COURSE_TITLE,
            color=NEW_COURSE_COLOR,
            bg_gradient=NEW_COURSE_GRADIENT,
            exams=[],
            units=[Unit(id=f"unit-{self._new_id()}", title=NEW_UNIT_TITLE, tasks=[])],
        )
        self._publish([*self._store.read(), course])
        logger.info("Course created id=%s", course.id)
        return course

    def delete_course(self, course_id: str) -> Course | None:
        """Remove a course with its units, tasks and exams. Returns the removed course."""
        courses = self._store.read()
        removed = next((c for c in courses if c.id == course_id), None)
        if removed is None:
            return None
        self._publish([c for c in courses if c.id != course_id])
        logger.info("Course deleted id=%s tasks=%d", course_id, sum(1 for _ in removed.iter_tasks()))
        return removed
