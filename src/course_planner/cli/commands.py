# src/course_planner/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from pathlib import Path
from typing import cast

from ..core.state import AppState
from ..planner import api
from ..planner.backup import backup_status, import_file, write_backup
from ..planner.models import Course, TaskStatus
from ..planner.progress import course_progress, next_task, streak_stats, total_progress
from ..planner.reports import course_markdown, tasks_csv

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /toggle, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _resolve_course(state: AppState, ref: str) -> Course | None:
    """Find a course by id, code (case-insensitive) or 1-based list position."""
    courses = state.courses.courses
    for c in courses:
        if c.id == ref or c.code.lower() == ref.lower():
            return c
    if ref.isdigit() and 1 <= int(ref) <= len(courses):
        return courses[int(ref) - 1]
    return None


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_courses(state: AppState, args: list[str]) -> str:
    courses = state.courses.courses
    if not courses:
        return "No courses yet. Use /new to create one."
    done = state.tasks.completed
    lines = ["Courses:"]
    for i, c in enumerate(courses, start=1):
        lines.append(f"  {i}. [{c.code}] {c.title} - {course_progress(c, done)}% ({c.id})")
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <course id|code|#>"
    course = _resolve_course(state, args[0])
    if course is None:
        return f"No course matches {args[0]!r}."

    done = state.tasks.completed
    lines = [f"[{course.code}] {course.title} - {course_progress(course, done)}%"]
    for exam in course.exams:
        lines.append(f"  exam: {exam.title} on {exam.date}{' ' + exam.time if exam.time else ''}")
    for unit in course.units:
        lines.append(f"  {unit.title}")
        for task in unit.tasks:
            mark = "x" if task.id in done else " "
            status = (task.status or TaskStatus.TODO).value
            lines.append(f"    [{mark}] {task.text} ({task.id}, {status})")
    nxt = next_task(course, done)
    if nxt is not None:
        lines.append(f"  next: {nxt[1].text} ({nxt[0]})")
    return "\n".join(lines)


def cmd_toggle(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /toggle <task id>"
    task_id = args[0]
    if state.courses.find_task(task_id) is None:
        return f"No task with id {task_id!r}."
    done = api.toggle_task(state, task_id)
    return f"Task {task_id} {'completed' if done else 'reopened'}."


def cmd_undo(state: AppState, args: list[str]) -> str:
    if not api.undo(state):
        return "Nothing to undo."
    return f"Undone. ({state.tasks.undo_depth} more step(s) available)"


def cmd_add(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /add <course id|code|#> <task text>"
    course = _resolve_course(state, args[0])
    if course is None:
        return f"No course matches {args[0]!r}."
    task = state.courses.append_task(course.id, " ".join(args[1:]))
    if task is None:
        return f"Course {course.code} has no units to add tasks to."
    return f"Added {task.id} to {course.code}."


def cmd_status(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /status <task id> <todo|in-progress|review|done>"
    try:
        status = TaskStatus.parse(args[1])
    except ValueError as e:
        return str(e)
    if not api.update_task_status(state, args[0], status):
        return f"No task with id {args[0]!r}."
    return f"Task {args[0]} moved to {status.value}."


def cmd_new(state: AppState, args: list[str]) -> str:
    course = state.courses.create_course()
    return f"Created course {course.id} ({course.title})."


def cmd_delete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /delete <course id|code|#>"
    course = _resolve_course(state, args[0])
    if course is None:
        return f"No course matches {args[0]!r}."
    if emit:
        emit(f"Deleting {course.code} with {len(state.courses.task_ids(course.id))} task(s)...")
    api.delete_course(state, course.id)
    return f"Deleted course {course.code}."


def cmd_progress(state: AppState, args: list[str]) -> str:
    stats = streak_stats(state.tasks.history)
    return (
        "Progress:\n"
        f"  Overall: {total_progress(state.courses.courses, state.tasks.completed)}%\n"
        f"  Streak: {stats.streak} day(s){' (done today)' if stats.completed_today else ''}\n"
        f"  This week: {stats.weekly_count} task(s)"
    )


def cmd_export(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /export <path.json>"
    try:
        path = write_backup(state, args[0])
    except OSError as e:
        return f"Export failed: {e}"
    return f"Exported to {path}."


def cmd_import(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /import <path.json>"
    if not import_file(state, args[0]):
        return "Import failed; nothing was changed."
    return f"Imported {len(state.courses.courses)} course(s)."


def cmd_report(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /report <course id|code|#>"
    course = _resolve_course(state, args[0])
    if course is None:
        return f"No course matches {args[0]!r}."
    return course_markdown(course, state.tasks.completed)


def cmd_csv(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /csv <path.csv>"
    path = Path(args[0]).expanduser()
    text = tasks_csv(state.courses.courses, state.tasks.completed, state.tasks.history)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        logger.warning("CSV export failed path=%s: %s", path, e)
        return f"Export failed: {e}"
    return f"Wrote {len(state.courses.task_ids())} task(s) to {path}."


def cmd_backup(state: AppState, args: list[str]) -> str:
    st = backup_status(state)
    if st.last_backup is None:
        return "No backup yet. Use /export <path.json>."
    hint = " Time for a new one (/export)." if st.should_remind else ""
    return f"Last backup {st.days_since} day(s) ago.{hint}"


def cmd_namespace(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Current namespace: {state.namespace}"
    api.switch_namespace(state, args[0])
    return f"Switched to namespace {state.namespace}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("courses", cmd_courses, help_text="List courses with progress.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show units and tasks: /show <course>.")
registry.register("toggle", cmd_toggle, help_text="Complete/reopen a task: /toggle <task>.", aliases=["t"])
registry.register("undo", cmd_undo, help_text="Undo the last completion change.", aliases=["u"])
registry.register("add", cmd_add, help_text="Append a task: /add <course> <text>.")
registry.register("status", cmd_status, help_text="Kanban column: /status <task> <todo|in-progress|review|done>.")
registry.register("new", cmd_new, help_text="Create a new course.")
registry.register("delete", cmd_delete, help_text="Delete a course: /delete <course>.")
registry.register("progress", cmd_progress, help_text="Overall progress and streak.")
registry.register("export", cmd_export, help_text="Write a JSON backup: /export <path>.")
registry.register("import", cmd_import, help_text="Restore a JSON backup: /import <path>.")
registry.register("report", cmd_report, help_text="Markdown checklist: /report <course>.")
registry.register("csv", cmd_csv, help_text="Write every task as CSV: /csv <path>.")
registry.register("backup", cmd_backup, help_text="When was the last backup?")
registry.register("namespace", cmd_namespace, help_text="Show or switch profile: /namespace [name].")
