from __future__ import annotations

import asyncio

from courier.agent import Notification, RunCompleted, ToolUse
from courier.progress import PROGRESS_INTERVAL, ProgressNotifier
from courier.sessions import SessionRegistry, TaskKind


class ManualClock:
    def __init__(self, start: float = 500.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class Recorder:
    def __init__(self) -> None:
        self.messages: list[str] = []

    async def __call__(self, text: str) -> None:
        self.messages.append(text)


def make_session(clock: ManualClock):
    registry = SessionRegistry(clock=clock)
    return registry.create("demo", task_kind=TaskKind.FIX)


def test_burst_of_events_emits_at_most_once_per_interval() -> None:
    clock = ManualClock()
    session = make_session(clock)
    sent = Recorder()
    notifier = ProgressNotifier(sent, interval=PROGRESS_INTERVAL, clock=clock)
    clock.now += PROGRESS_INTERVAL

    async def burst() -> None:
        for index in range(1000):
            await notifier.on_event(ToolUse(name="Edit", file_path=f"src/file_{index % 5}.ts"), session)

    asyncio.run(burst())

    assert len(sent.messages) <= 1
    assert notifier.emitted == len(sent.messages)
    assert len(session.edited_files) == 5


def test_no_message_before_first_interval_elapses() -> None:
    clock = ManualClock()
    session = make_session(clock)
    sent = Recorder()
    notifier = ProgressNotifier(sent, interval=20.0, clock=clock)

    clock.now += 19.9
    result = asyncio.run(notifier.on_event(ToolUse(name="Read", file_path="a.ts"), session))

    assert result is None
    assert sent.messages == []
    assert session.last_activity == "Read"


def test_message_reports_elapsed_activity_and_file_count() -> None:
    clock = ManualClock()
    session = make_session(clock)
    sent = Recorder()
    notifier = ProgressNotifier(sent, interval=20.0, clock=clock)

    async def scenario() -> None:
        await notifier.on_event(ToolUse(name="Write", file_path="login.ts"), session)
        clock.now += 25
        await notifier.on_event(ToolUse(name="Edit", file_path="auth.ts"), session)
        clock.now += 5
        await notifier.on_event(Notification(message="Running the tests"), session)
        clock.now += 20
        await notifier.on_event(Notification(message="All green"), session)

    asyncio.run(scenario())

    assert sent.messages == [
        "[25s] Edit\nFiles: 2",
        "[50s] All green\nFiles: 2",
    ]


def test_read_only_tools_do_not_count_as_edits() -> None:
    clock = ManualClock()
    session = make_session(clock)
    notifier = ProgressNotifier(Recorder(), clock=clock)

    async def scenario() -> None:
        await notifier.on_event(ToolUse(name="Read", file_path="a.ts"), session)
        await notifier.on_event(ToolUse(name="Grep"), session)
        await notifier.on_event(ToolUse(name="Edit", file_path="a.ts"), session)
        await notifier.on_event(ToolUse(name="Edit", file_path="a.ts"), session)

    asyncio.run(scenario())

    assert session.edited_files == {"a.ts"}


def test_run_completed_is_ignored() -> None:
    clock = ManualClock()
    session = make_session(clock)
    sent = Recorder()
    notifier = ProgressNotifier(sent, clock=clock)
    clock.now += 100

    result = asyncio.run(notifier.on_event(RunCompleted(total_cost_usd=0.1), session))

    assert result is None
    assert sent.messages == []


def test_send_failure_is_logged_and_swallowed(caplog) -> None:
    clock = ManualClock()
    session = make_session(clock)

    async def broken(_: str) -> None:
        raise ConnectionError("telegram down")

    notifier = ProgressNotifier(broken, interval=1.0, clock=clock)
    clock.now += 2
    caplog.set_level("WARNING", logger="courier.progress")

    result = asyncio.run(notifier.on_event(ToolUse(name="Edit", file_path="x.ts"), session))

    assert result == "[2s] Edit\nFiles: 1"
    assert any("delivery failed" in record.getMessage() for record in caplog.records)


def test_notifiers_do_not_share_state() -> None:
    clock = ManualClock()
    registry = SessionRegistry(clock=clock)
    first = registry.create("alpha")
    second = registry.create("beta")
    sent = Recorder()
    notifier_a = ProgressNotifier(sent, interval=10.0, clock=clock)
    notifier_b = ProgressNotifier(sent, interval=10.0, clock=clock)
    clock.now += 10

    async def scenario() -> None:
        await notifier_a.on_event(ToolUse(name="Edit", file_path="a.ts"), first)
        await notifier_b.on_event(ToolUse(name="Edit", file_path="b.ts"), second)

    asyncio.run(scenario())

    assert len(sent.messages) == 2
    assert first.edited_files == {"a.ts"}
    assert second.edited_files == {"b.ts"}
