# src/course_planner/planner/reports.py

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Mapping, Set

from .models import Course


def _date_part(ts: str | None) -> str:
    return ts.split("T", 1)[0] if ts else "-"


def course_markdown(course: Course, completed: Set[str]) -> str:
    """Markdown checklist of one course: exams first, then numbered units."""
    lines = [f"# {course.title} ({course.code})", ""]

    if course.exams:
        lines += ["## Exams", ""]
        for exam in course.exams:
            when = f"{exam.date} {exam.time}" if exam.time else exam.date
            lines.append(f"- **{exam.title}**: {when}")
        lines.append("")

    for i, unit in enumerate(course.units, start=1):
        lines += [f"## {i}. {unit.title}", ""]
        for task in unit.tasks:
            mark = "x" if task.id in completed else " "
            lines.append(f"- [{mark}] {task.text}")
            if task.notes:
                quoted = task.notes.replace("\n", "\n  > ")
                lines.append(f"  > {quoted}")
            if task.tags:
                lines.append("  tags: " + " ".join(f"`{t}`" for t in task.tags))
            if task.due_date:
                lines.append(f"  due: {task.due_date}")
        lines.append("")

    return "\n".join(lines)


def tasks_csv(
    courses: Iterable[Course], completed: Set[str], history: Mapping[str, str]
) -> str:
    """Flat CSV of every task with its completion state and date."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(["Course Code", "Course", "Unit", "Task", "Status", "Completed On"])
    for course in courses:
        for unit in course.units:
            for task in unit.tasks:
                done = task.id in completed
                writer.writerow(
                    [
                        course.code,
                        course.title,
                        unit.title,
                        task.text,
                        "Completed" if done else "Pending",
                        _date_part(history.get(task.id)) if done else "-",
                    ]
                )
    return buf.getvalue()
