# src/course_planner/planner/backup.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..core.notify import emit
from ..core.ports import NotificationLevel
from ..core.state import AppState
from ..storage.schemas import COMPLETED_TASK_IDS, COMPLETION_HISTORY, COURSES
from .api import flush
from .task_state import iso_timestamp

logger = logging.getLogger(__name__)

BUNDLE_VERSION = "2.0"
DEFAULT_REMINDER_DAYS = 7


class ImportRejected(ValueError):
    """The import bundle is malformed; nothing was applied."""


def export_bundle(state: AppState, *, now: datetime | None = None) -> dict[str, Any]:
    """Snapshot of everything needed to restore the planner elsewhere."""
    now = now or datetime.now(timezone.utc)
    return {
        "courses": COURSES.dump(state.courses.courses),
        "completedTaskIds": sorted(state.tasks.completed),
        "completionHistory": state.tasks.history,
        "exportDate": iso_timestamp(now),
        "version": BUNDLE_VERSION,
    }


def write_backup(state: AppState, path: str | Path, *, now: datetime | None = None) -> Path:
    """
    Write the export bundle as pretty JSON and remember when it happened.

    Raises OSError on I/O failure (after notifying the user).
    """
    now = now or datetime.now(timezone.utc)
    path = Path(path).expanduser()
    flush(state)
    bundle = export_bundle(state, now=now)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(bundle, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, path)
    except OSError:
        logger.exception("Backup failed path=%s", path)
        emit(state.notifier, "Backup failed.", NotificationLevel.ERROR)
        raise

    state.last_backup.write(bundle["exportDate"])
    logger.info("Backup written path=%s courses=%d", path, len(bundle["courses"]))
    emit(state.notifier, "Backup completed!", NotificationLevel.SUCCESS)
    return path


def _parse_bundle(raw: str | bytes | dict[str, Any]) -> tuple[list, list[str] | None, dict[str, str] | None]:
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise ImportRejected(f"not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ImportRejected("bundle must be a JSON object")

    raw_courses = data.get("courses")
    if raw_courses is None or not isinstance(raw_courses, list):
        raise ImportRejected("'courses' is missing or not a list")

    courses = COURSES.validate(raw_courses)
    if not courses.ok:
        raise ImportRejected(f"invalid courses: {courses.error}")

    # "completedTasks" is what older exports used.
    raw_ids = data.get("completedTaskIds", data.get("completedTasks"))
    raw_history = data.get("completionHistory")

    ids: list[str] | None = None
    if raw_ids is not None:
        checked = COMPLETED_TASK_IDS.validate(raw_ids)
        if not checked.ok:
            raise ImportRejected(f"invalid completed task ids: {checked.error}")
        ids = checked.value

    history: dict[str, str] | None = None
    if raw_history is not None:
        checked_h = COMPLETION_HISTORY.validate(raw_history)
        if not checked_h.ok:
            raise ImportRejected(f"invalid completion history: {checked_h.error}")
        history = checked_h.value

    return courses.value, ids, history  # type: ignore[return-value]


def import_bundle(state: AppState, raw: str | bytes | dict[str, Any]) -> bool:
    """
    Validate and apply an export bundle.

    All-or-nothing: the whole bundle is checked before anything changes.
    The outcome is reported through the notification sink; returns True on success.
    """
    try:
        courses, ids, history = _parse_bundle(raw)
    except ImportRejected as e:
        logger.warning("Import rejected: %s", e)
        emit(state.notifier, "Invalid file format!", NotificationLevel.ERROR)
        return False

    state.courses.replace_all(courses)
    if ids is not None or history is not None:
        state.tasks.hydrate(ids or [], history or {})

    logger.info("Import applied courses=%d completed=%d", len(courses), len(state.tasks.completed))
    emit(state.notifier, "Data imported successfully!", NotificationLevel.SUCCESS)
    return True


def import_file(state: AppState, path: str | Path) -> bool:
    path = Path(path).expanduser()
    try:
        raw = path.read_bytes()
    except OSError as e:
        logger.warning("Import failed to read %s: %s", path, e)
        emit(state.notifier, f"Cannot read {path}.", NotificationLevel.ERROR)
        return False
    return import_bundle(state, raw)


@dataclass(frozen=True, slots=True)
class BackupStatus:
    last_backup: datetime | None
    days_since: int | None
    should_remind: bool


def backup_status(
    state: AppState, *, now: datetime | None = None, remind_after_days: int | None = None
) -> BackupStatus:
    """Whether it is time to remind the user to export a backup."""
    now = now or datetime.now(timezone.utc)
    if remind_after_days is None:
        remind_after_days = int(getattr(state.settings, "backup_reminder_days", DEFAULT_REMINDER_DAYS))

    last: datetime | None = None
    raw = state.last_backup.read()
    if raw:
        with contextlib.suppress(ValueError):
            last = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if last is None:
        return BackupStatus(last_backup=None, days_since=None, should_remind=True)

    if last.tzinfo is None:
        last = last.replace(tzinfo=timezone.utc)
    days = max(0, (now - last).days)
    return BackupStatus(last_backup=last, days_since=days, should_remind=days >= remind_after_days)
