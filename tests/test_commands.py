# tests/test_commands.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

from course_planner.cli.bootstrap import create_initial_state
from course_planner.cli.commands import CommandRegistry, registry
from course_planner.connectors.console_connector import run_console_loop
from course_planner.storage.backends import MemoryStorage

from .fakes import FakeClock, ManualScheduler, RecordingNotifier


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    emitted: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a", aliases=["aa"])
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x y") == "h2:x,y"
    assert reg.handle(state, "/AA") == "h2:"
    assert reg.handle(state, "/b", emit=emitted.append) == "h3"
    assert called == {"h2": 2, "h3": 1}
    assert emitted == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_help_lists_registered_commands(state) -> None:
    text = registry.handle(state, "/help") or ""
    for name in ("/courses", "/toggle", "/undo", "/export", "/namespace"):
        assert name in text


def test_toggle_and_undo_commands(state) -> None:
    assert registry.handle(state, "/t 221-1-1") == "Task 221-1-1 completed."
    assert state.tasks.is_completed("221-1-1")
    assert "Undone" in (registry.handle(state, "/undo") or "")
    assert not state.tasks.is_completed("221-1-1")
    assert registry.handle(state, "/undo") == "Nothing to undo."
    assert "No task" in (registry.handle(state, "/toggle ghost") or "")


def test_courses_and_show_resolve_by_code_and_position(state) -> None:
    listing = registry.handle(state, "/ls") or ""
    assert "[285] Differential Equations - 33%" in listing

    by_code = registry.handle(state, "/show 221") or ""
    by_pos = registry.handle(state, "/show 2") or ""
    assert by_code == by_pos
    assert "Linear Algebra" in by_code
    assert "next: Gaussian elimination" in by_code


def test_add_and_status_commands(state) -> None:
    reply = registry.handle(state, "/add 285 Solve exercise 2.4") or ""
    assert reply == "Added diff-eq-custom-id1 to 285."

    assert registry.handle(state, "/status diff-eq-custom-id1 in_progress") == (
        "Task diff-eq-custom-id1 moved to in-progress."
    )
    assert "unknown task status" in (registry.handle(state, "/status diff-eq-custom-id1 later") or "")


def test_delete_command_emits_progress(state) -> None:
    lines: list[str] = []
    assert registry.handle(state, "/delete diff-eq", emit=lines.append) == "Deleted course 285."
    assert lines == ["Deleting 285 with 6 task(s)..."]
    assert state.courses.get_course("diff-eq") is None


def test_export_and_backup_commands(state, tmp_path: Path) -> None:
    assert registry.handle(state, "/backup") == "No backup yet. Use /export <path.json>."
    target = tmp_path / "out.json"
    assert registry.handle(state, f"/export {target}") == f"Exported to {target}."
    assert "Last backup 0 day(s) ago." == registry.handle(state, "/backup")


def test_console_loop_runs_commands_until_exit(state, capsys) -> None:
    inputs = iter(["", "hello", "/toggle 221-1-1", "/namespace", "/namespace  ", "/exit", "/toggle 221-1-2"])

    run_console_loop(state, read_line=lambda _prompt: next(inputs))

    out = capsys.readouterr().out
    assert "Commands start with '/'" in out
    assert "Task 221-1-1 completed." in out
    assert "Current namespace: test" in out
    assert not state.tasks.is_completed("221-1-2")


def test_console_loop_prints_usage_and_replies(state, capsys) -> None:
    inputs = iter(["/add 285    ", "/new", "/quit"])

    run_console_loop(state, read_line=lambda _prompt: next(inputs))

    out = capsys.readouterr().out
    assert "Usage: /add" in out
    assert "Created course custom-id1" in out


def test_console_loop_stops_on_eof(state) -> None:
    def read_line(_prompt: str) -> str:
        raise EOFError

    run_console_loop(state, read_line=read_line)


def test_csv_command_writes_every_task(state, tmp_path: Path) -> None:
    target = tmp_path / "exports" / "tasks.csv"
    assert registry.handle(state, f"/csv {target}") == f"Wrote 10 task(s) to {target}."

    lines = target.read_text("utf-8").splitlines()
    assert lines[0] == '"Course Code","Course","Unit","Task","Status","Completed On"'
    assert len(lines) == 11
    assert registry.handle(state, "/csv") == "Usage: /csv <path.csv>"


def test_console_loop_announces_first_completion_of_the_day(settings, capsys) -> None:
    # Seed completions land yesterday, each later completion one day further on.
    clock = FakeClock(start=datetime.now(timezone.utc) - timedelta(days=1), step=timedelta(days=1))
    live = create_initial_state(
        settings=settings,
        storage=MemoryStorage(),
        scheduler=ManualScheduler(),
        notifier=RecordingNotifier(),
        clock=clock,
    )
    inputs = iter(["/toggle 221-1-1", "/toggle 221-1-2", "/exit"])

    run_console_loop(live, read_line=lambda _prompt: next(inputs))

    out = capsys.readouterr().out
    assert out.count("First task of the day done.") == 1
    assert "Streak: 2 day(s)." in out

    # The listener is gone once the loop returns.
    live.tasks.toggle("221-2-1")
    assert "First task of the day" not in capsys.readouterr().out
