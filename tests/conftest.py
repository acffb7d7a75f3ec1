# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from course_planner.cli.bootstrap import create_initial_state
from course_planner.core.state import AppState

from .fakes import CountingStorage, FakeClock, ManualScheduler, RecordingNotifier, SequentialIds


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the planner modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="planner-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        storage_backend="memory",
        storage_path=tmp_path / "store",
        storage_quota_bytes=0,
        namespace="test",
        write_debounce_ms=500,
        undo_limit=20,
        seed_on_first_run=True,
        purge_orphans_on_delete=True,
        backup_reminder_days=7,
    )


@pytest.fixture()
def storage() -> CountingStorage:
    return CountingStorage()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    storage: CountingStorage,
    scheduler: ManualScheduler,
    notifier: RecordingNotifier,
    clock: FakeClock,
) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: storage is a real MemoryStorage (counting writes); only time and
    the debounce timer are faked.
    """
    return create_initial_state(
        settings=settings,
        storage=storage,
        scheduler=scheduler,
        notifier=notifier,
        clock=clock,
        id_factory=SequentialIds(),
    )
