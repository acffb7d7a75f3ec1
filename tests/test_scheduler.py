# tests/test_scheduler.py

from __future__ import annotations

import asyncio
import json
import threading
import time

import pytest

from course_planner.cli.bootstrap import create_initial_state, shutdown_state
from course_planner.planner import api
from course_planner.storage.backends import MemoryStorage
from course_planner.storage.durable import DurableStore
from course_planner.storage.scheduler import AsyncioScheduler, ThreadTimerScheduler


def test_thread_scheduler_reschedule_keeps_only_last_callback() -> None:
    sched = ThreadTimerScheduler()
    calls: list[str] = []
    fired = threading.Event()

    def make(label: str):
        def cb() -> None:
            calls.append(label)
            fired.set()

        return cb

    for label in ("a", "b", "c"):
        sched.schedule("k", make(label), 0.05)

    assert fired.wait(timeout=2.0)
    time.sleep(0.1)
    assert calls == ["c"]
    assert sched.pending_keys() == []


def test_thread_scheduler_cancel() -> None:
    sched = ThreadTimerScheduler()
    calls: list[int] = []

    sched.schedule("k", lambda: calls.append(1), 0.05)
    sched.cancel("k")
    time.sleep(0.15)

    assert calls == []


def test_thread_scheduler_swallows_callback_errors() -> None:
    sched = ThreadTimerScheduler()
    done = threading.Event()

    def boom() -> None:
        done.set()
        raise RuntimeError("write failed")

    sched.schedule("k", boom, 0.0)
    assert done.wait(timeout=2.0)

    # Still usable afterwards.
    ok = threading.Event()
    sched.schedule("k", ok.set, 0.0)
    assert ok.wait(timeout=2.0)


def test_durable_store_with_thread_scheduler_persists_last_value() -> None:
    storage = MemoryStorage()
    sched = ThreadTimerScheduler()
    store = DurableStore(storage, "ids", default=list, scheduler=sched, delay=0.05)

    for i in range(5):
        store.write([f"t{i}"])

    deadline = time.monotonic() + 2.0
    while storage.get("ids") is None and time.monotonic() < deadline:
        time.sleep(0.01)

    assert storage.get("ids") == b'["t4"]'
    assert not store.pending


@pytest.mark.asyncio
async def test_asyncio_scheduler_debounces() -> None:
    sched = AsyncioScheduler()
    calls: list[str] = []

    for label in ("a", "b", "c"):
        sched.schedule("k", lambda label=label: calls.append(label), 0.01)

    assert sched.pending_keys() == ["k"]
    await asyncio.sleep(0.05)

    assert calls == ["c"]
    assert sched.pending_keys() == []


@pytest.mark.asyncio
async def test_asyncio_scheduler_cancel_all() -> None:
    sched = AsyncioScheduler()
    calls: list[str] = []

    sched.schedule("a", lambda: calls.append("a"), 0.01)
    sched.schedule("b", lambda: calls.append("b"), 0.01)
    sched.cancel_all()
    await asyncio.sleep(0.03)

    assert calls == []


@pytest.mark.asyncio
async def test_durable_store_with_asyncio_scheduler() -> None:
    storage = MemoryStorage()
    store = DurableStore(storage, "ids", default=list, scheduler=AsyncioScheduler(), delay=0.01)

    store.write(["x"])
    store.write(["x", "y"])
    assert storage.get("ids") is None

    await asyncio.sleep(0.05)
    assert storage.get("ids") == b'["x","y"]'


@pytest.mark.asyncio
async def test_planner_state_embedded_in_event_loop(settings) -> None:
    storage = MemoryStorage()
    state = create_initial_state(settings=settings, storage=storage, scheduler=AsyncioScheduler())
    delay = settings.write_debounce_ms / 1000.0

    api.toggle_task(state, "221-1-1")
    assert storage.get("test:completed-task-ids") is None

    await asyncio.sleep(delay + 0.1)
    assert "221-1-1" in json.loads(storage.get("test:completed-task-ids"))
    shutdown_state(state)
