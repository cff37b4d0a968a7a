from datetime import datetime, timedelta, timezone

import pytest

from src.integrations.contracts.carriers import RpaTaskState
from src.submissions.status_poller import StatusPoller

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _task(status, **extra):
    return {"task_id": f"encova_sub-1_{status}", "status": status, "submitted_at": T0.isoformat(), **extra}


class FakeStatusRead:
    """Serves one snapshot per poll, repeating the last one."""

    def __init__(self, snapshots):
        self.snapshots = list(snapshots)
        self.calls = 0

    async def __call__(self):
        snapshot = self.snapshots[min(self.calls, len(self.snapshots) - 1)]
        self.calls += 1
        if isinstance(snapshot, Exception):
            raise snapshot
        return snapshot


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.mark.asyncio
async def test_polls_until_every_task_is_terminal():
    fetch = FakeStatusRead([
        {"encova": _task("queued"), "guard": _task("queued")},
        {"encova": _task("running"), "guard": _task("failed", completed_at=T0.isoformat(), error="boom")},
        {"encova": _task("completed", completed_at=T0.isoformat()), "guard": _task("failed", completed_at=T0.isoformat(), error="boom")},
    ])
    sleep = RecordingSleep()
    seen = []
    poller = StatusPoller(fetch, clock=lambda: T0, sleep=sleep)

    tasks = await poller.run(on_update=lambda p: seen.append(p.polls))

    assert fetch.calls == 3
    assert sleep.delays == [5.0, 5.0]
    assert seen == [1, 2, 3]
    assert tasks["encova"].status == RpaTaskState.COMPLETED
    assert not poller.is_active()


@pytest.mark.asyncio
async def test_stops_immediately_when_there_are_no_tasks():
    fetch = FakeStatusRead([{}])
    sleep = RecordingSleep()

    tasks = await StatusPoller(fetch, sleep=sleep).run()

    assert tasks == {}
    assert fetch.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_failed_poll_keeps_last_snapshot_and_retries():
    fetch = FakeStatusRead([RuntimeError("connection reset"), {"encova": _task("completed", completed_at=T0.isoformat())}])
    poller = StatusPoller(fetch, sleep=RecordingSleep())
    poller.seed({"encova": _task("queued")})

    tasks = await poller.run()

    assert poller.polls == 2
    assert tasks["encova"].status == RpaTaskState.COMPLETED


@pytest.mark.asyncio
async def test_max_polls_bounds_the_loop():
    fetch = FakeStatusRead([{"encova": _task("running")}])
    poller = StatusPoller(fetch, sleep=RecordingSleep())

    await poller.run(max_polls=4)

    assert fetch.calls == 4
    assert poller.is_active()


@pytest.mark.asyncio
async def test_authoritative_poll_overrides_simulated_state():
    now = T0 + timedelta(seconds=8)
    fetch = FakeStatusRead([{"encova": _task("failed", completed_at=now.isoformat(), error="Portal down")}])
    poller = StatusPoller(fetch, clock=lambda: now)
    poller.seed({"encova": _task("queued")})

    simulated = poller.display_tasks()["encova"]
    assert simulated.status == RpaTaskState.RUNNING
    assert simulated.simulated is True
    assert poller.tasks["encova"].status == RpaTaskState.QUEUED

    await poller.refresh()

    shown = poller.display_tasks()["encova"]
    assert shown.status == RpaTaskState.FAILED
    assert shown.simulated is False
    assert poller.progress() == {"encova": 100}


def test_progress_follows_simulation():
    poller = StatusPoller(FakeStatusRead([{}]), accept_dwell_seconds=1, run_dwell_seconds=1)
    poller.seed({"encova": _task("queued")})

    assert poller.progress(T0) == {"encova": 5}
    assert poller.progress(T0 + timedelta(seconds=1)) == {"encova": 20}
    assert poller.progress(T0 + timedelta(seconds=2)) == {"encova": 20}
