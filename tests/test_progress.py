# tests/test_progress.py

from __future__ import annotations

import csv
import io
from datetime import date

from course_planner.planner.models import Course, Exam, Task, Unit
from course_planner.planner.progress import (
    course_progress,
    is_course_complete,
    next_task,
    streak_stats,
    total_progress,
)
from course_planner.planner.reports import course_markdown, tasks_csv
from course_planner.planner.seed import seed_courses


def _course() -> Course:
    return Course(
        id="c1",
        code="101",
        title="Intro",
        color="bg-red-500",
        bg_gradient="g",
        exams=[Exam(id="e1", title="Final", date="2025-06-01", time="09:00")],
        units=[
            Unit(title="Basics", tasks=[Task(id="a", text="Read"), Task(id="b", text="Practice", notes="p. 12")]),
            Unit(title="More", tasks=[Task(id="c", text="Quiz", tags=["exam"], due_date="2025-05-20")]),
        ],
    )


def test_course_progress_is_integer_percent() -> None:
    course = _course()
    assert course_progress(course, set()) == 0
    assert course_progress(course, {"a"}) == 33
    assert course_progress(course, {"a", "b"}) == 67
    assert course_progress(course, {"a", "b", "c"}) == 100


def test_empty_course_has_zero_progress_and_is_not_complete() -> None:
    empty = _course().model_copy(update={"units": []})
    assert course_progress(empty, {"a"}) == 0
    assert is_course_complete(empty, {"a"}) is False


def test_total_progress_over_seed() -> None:
    courses = seed_courses()
    assert total_progress(courses, {"285-1-1", "285-1-2"}) == 20
    assert total_progress([], set()) == 0


def test_next_task_skips_completed() -> None:
    course = _course()
    assert next_task(course, {"a"}) == ("Basics", course.units[0].tasks[1])
    assert next_task(course, {"a", "b"})[0] == "More"
    assert next_task(course, {"a", "b", "c"}) is None


def test_streak_counts_consecutive_days_through_today() -> None:
    history = {
        "a": "2025-03-12T08:00:00.000Z",
        "b": "2025-03-11T23:59:00.000Z",
        "c": "2025-03-10T10:00:00.000Z",
        "d": "2025-03-08T10:00:00.000Z",
    }
    stats = streak_stats(history, today=date(2025, 3, 12))
    assert stats.streak == 3
    assert stats.completed_today is True


def test_streak_survives_a_day_not_finished_yet() -> None:
    history = {"a": "2025-03-11T08:00:00.000Z", "b": "2025-03-10T08:00:00.000Z"}
    stats = streak_stats(history, today=date(2025, 3, 12))
    assert stats.streak == 2
    assert stats.completed_today is False

    assert streak_stats(history, today=date(2025, 3, 13)).streak == 0


def test_weekly_count_starts_on_sunday() -> None:
    # 2025-03-09 is a Sunday.
    history = {
        "a": "2025-03-08T12:00:00.000Z",
        "b": "2025-03-09T00:30:00.000Z",
        "c": "2025-03-12T12:00:00.000Z",
        "bad": "yesterday",
    }
    assert streak_stats(history, today=date(2025, 3, 12)).weekly_count == 2
    assert streak_stats(history, today=date(2025, 3, 16)).weekly_count == 0


def test_course_markdown_lists_exams_units_and_checkboxes() -> None:
    md = course_markdown(_course(), {"b"})
    lines = md.splitlines()

    assert lines[0] == "# Intro (101)"
    assert "## Exams" in lines
    assert "- **Final**: 2025-06-01 09:00" in lines
    assert "## 1. Basics" in lines and "## 2. More" in lines
    assert "- [ ] Read" in lines
    assert "- [x] Practice" in lines
    assert "  > p. 12" in lines
    assert "  tags: `exam`" in lines
    assert "  due: 2025-05-20" in lines


def test_tasks_csv_rows() -> None:
    out = tasks_csv([_course()], {"a"}, {"a": "2025-03-12T08:00:00.000Z"})
    assert out.startswith('"Course Code","Course","Unit","Task","Status","Completed On"\n')

    rows = list(csv.reader(io.StringIO(out)))
    assert len(rows) == 4
    assert rows[1] == ["101", "Intro", "Basics", "Read", "Completed", "2025-03-12"]
    assert rows[2] == ["101", "Intro", "Basics", "Practice", "Pending", "-"]
