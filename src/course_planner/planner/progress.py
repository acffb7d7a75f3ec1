# src/course_planner/planner/progress.py

from __future__ import annotations

from collections.abc import Iterable, Mapping, Set
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from .models import Course, Task


def _percent(done: int, total: int) -> int:
    return 0 if total == 0 else round(done * 100 / total)


def course_progress(course: Course, completed: Set[str]) -> int:
    """Integer percent of the course's tasks that are completed (0 for an empty course)."""
    tasks = list(course.iter_tasks())
    return _percent(sum(1 for t in tasks if t.id in completed), len(tasks))


def total_progress(courses: Iterable[Course], completed: Set[str]) -> int:
    total = done = 0
    for course in courses:
        for task in course.iter_tasks():
            total += 1
            done += task.id in completed
    return _percent(done, total)


def next_task(course: Course, completed: Set[str]) -> tuple[str, Task] | None:
    """First not-completed task in course order, with its unit title."""
    for unit in course.units:
        for task in unit.tasks:
            if task.id not in completed:
                return unit.title, task
    return None


def is_course_complete(course: Course, completed: Set[str]) -> bool:
    tasks = list(course.iter_tasks())
    return bool(tasks) and all(t.id in completed for t in tasks)


@dataclass(frozen=True, slots=True)
class StreakStats:
    streak: int
    weekly_count: int
    completed_today: bool


def _parse_ts(raw: str) -> datetime | None:
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def streak_stats(history: Mapping[str, str], today: date | None = None) -> StreakStats:
    """
    Streak of consecutive days with at least one completion (UTC dates).

    Counting starts today, or yesterday when nothing was completed today yet,
    so an unfinished day does not break the streak. weekly_count counts
    completions since the start of the week (Sunday).
    """
    if today is None:
        today = datetime.now(timezone.utc).date()

    stamps = [dt for dt in (_parse_ts(v) for v in history.values()) if dt is not None]
    days = {dt.date() for dt in stamps}

    completed_today = today in days
    cursor = today if completed_today else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)

    # date.weekday(): Monday=0 ... Sunday=6
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    weekly = sum(1 for dt in stamps if dt.date() >= week_start)

    return StreakStats(streak=streak, weekly_count=weekly, completed_today=completed_today)
