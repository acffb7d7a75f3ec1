# src/course_planner/planner/models.py

"""Course tree data models.

JSON documents use camelCase keys (dueDate, bgGradient, ...); Python code
uses the snake_case attribute names. Unknown keys are ignored on load.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TaskStatus(StrEnum):
    """Kanban column of a task."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"

    @classmethod
    def parse(cls, raw: str | TaskStatus) -> TaskStatus:
        """Accept "in-progress", "in_progress" or "IN PROGRESS"."""
        if isinstance(raw, TaskStatus):
            return raw
        norm = str(raw or "").strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return cls(norm)
        except ValueError:
            raise ValueError(f"unknown task status: {raw!r}") from None


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PlannerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Subtask(PlannerModel):
    id: str
    text: str
    completed: bool = False


class Task(PlannerModel):
    id: str
    text: str
    title: str | None = None
    status: TaskStatus | None = None
    initial_checked: bool | None = None
    due_date: str | None = None
    notes: str | None = None
    tags: list[str] | None = None
    subtasks: list[Subtask] | None = None
    priority: Priority | None = None
    pomodoros: int | None = None
    completed_pomodoros: int | None = None
    is_priority: bool | None = None
    is_favorite: bool | None = None


class Unit(PlannerModel):
    id: str | None = None
    title: str
    tasks: list[Task] = Field(default_factory=list)


class Exam(PlannerModel):
    id: str
    title: str
    date: str
    time: str | None = None


class Course(PlannerModel):
    id: str
    code: str
    title: str
    color: str
    custom_color: str | None = None
    bg_gradient: str
    units: list[Unit] = Field(default_factory=list)
    exam_date: str | None = None
    exams: list[Exam] = Field(default_factory=list)

    def iter_tasks(self):
        for unit in self.units:
            yield from unit.tasks
