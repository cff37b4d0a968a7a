from datetime import datetime, timedelta, timezone

import pytest

from src.integrations.contracts.carriers import RpaTaskState, RpaTaskStatus
from src.submissions.status_tracker import (
    InvalidTransitionError,
    apply_status_update,
    format_elapsed,
    has_active_tasks,
    progress_percent,
    simulate_progress,
)

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _at(seconds):
    return T0 + timedelta(seconds=seconds)


def _queued():
    return RpaTaskStatus(task_id="encova_sub-1_1", submitted_at=T0)


def _assert_monotonic(task):
    stamps = [task.submitted_at, task.accepted_at, task.running_at, task.completed_at]
    assert all(s is not None for s in stamps)
    assert stamps == sorted(stamps)


def test_forward_lifecycle_stamps_each_transition_once():
    task = _queued()
    task = apply_status_update(task, task.task_id, RpaTaskState.ACCEPTED, now=_at(3))
    task = apply_status_update(task, task.task_id, RpaTaskState.RUNNING, now=_at(10))
    task = apply_status_update(
        task, task.task_id, RpaTaskState.COMPLETED, now=_at(200), result={"policy_code": "ENC-1"}
    )

    assert task.status == RpaTaskState.COMPLETED
    assert (task.accepted_at, task.running_at, task.completed_at) == (_at(3), _at(10), _at(200))
    assert task.result.policy_code == "ENC-1"
    assert task.error is None
    _assert_monotonic(task)


def test_skipped_states_are_back_filled():
    task = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.RUNNING, now=_at(30))

    assert task.accepted_at == task.running_at == _at(30)
    assert task.completed_at is None


def test_reported_time_before_earlier_stamps_is_clamped():
    task = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.RUNNING, now=_at(30))
    task = apply_status_update(task, task.task_id, RpaTaskState.COMPLETED, now=_at(60), at=_at(-600))

    assert task.completed_at == _at(30)
    _assert_monotonic(task)


def test_naive_report_times_are_treated_as_utc():
    task = apply_status_update(
        _queued(), "encova_sub-1_1", RpaTaskState.COMPLETED, now=_at(90), at=datetime(2026, 3, 1, 12, 1, 0)
    )

    assert task.completed_at == _at(60)


def test_unknown_task_starts_queued():
    task = apply_status_update(None, "guard_sub-1_1", RpaTaskState.QUEUED, now=T0)

    assert task.status == RpaTaskState.QUEUED
    assert task.submitted_at == T0


def test_backwards_move_is_rejected():
    task = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.RUNNING, now=_at(30))

    with pytest.raises(InvalidTransitionError) as exc:
        apply_status_update(task, task.task_id, RpaTaskState.ACCEPTED, now=_at(40))

    assert exc.value.current == RpaTaskState.RUNNING
    assert exc.value.requested == RpaTaskState.ACCEPTED


def test_terminal_task_cannot_move():
    task = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.COMPLETED, now=_at(30))

    with pytest.raises(InvalidTransitionError):
        apply_status_update(task, task.task_id, RpaTaskState.FAILED, now=_at(40))


def test_failure_is_reachable_from_any_active_state():
    running = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.RUNNING, now=_at(30))
    failed = apply_status_update(
        running, running.task_id, RpaTaskState.FAILED, now=_at(45), error="Portal login failed", error_details={"step": 2}
    )

    assert failed.status == RpaTaskState.FAILED
    assert failed.running_at == _at(30)
    assert failed.completed_at == _at(45)
    assert failed.error == "Portal login failed"
    assert failed.error_details == {"step": 2}
    assert failed.result is None

    from_queued = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.FAILED, now=_at(5))
    assert from_queued.accepted_at is None
    assert from_queued.error == "Automation failed"


def test_repeated_status_is_a_no_op():
    task = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.RUNNING, now=_at(30))

    assert apply_status_update(task, task.task_id, RpaTaskState.RUNNING, now=_at(50)) is task


def test_repeated_completion_only_fills_a_missing_result():
    task = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.COMPLETED, now=_at(30))
    task = task.model_copy(update={"result": None})

    filled = apply_status_update(task, task.task_id, RpaTaskState.COMPLETED, now=_at(40), result={"quote_url": "q"})

    assert filled.result.quote_url == "q"
    assert filled.completed_at == _at(30)


def test_simulation_advances_on_fixed_dwells_without_touching_the_input():
    task = _queued()

    assert simulate_progress(task, _at(1)) is task

    accepted = simulate_progress(task, _at(3))
    assert accepted.status == RpaTaskState.ACCEPTED
    assert accepted.accepted_at == _at(2)
    assert accepted.simulated is True

    running = simulate_progress(task, _at(8))
    assert running.status == RpaTaskState.RUNNING
    assert running.running_at == _at(7)

    assert task.status == RpaTaskState.QUEUED
    assert task.simulated is False


def test_simulation_never_touches_running_or_terminal_tasks():
    running = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.RUNNING, now=_at(30))
    done = apply_status_update(running, running.task_id, RpaTaskState.COMPLETED, now=_at(60))

    assert simulate_progress(running, _at(500)) is running
    assert simulate_progress(done, _at(500)) is done


def test_progress_percent():
    running = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.RUNNING, now=_at(10))

    assert progress_percent(None, T0) == 0
    assert progress_percent(_queued(), T0) == 5
    assert progress_percent(simulate_progress(_queued(), _at(3)), _at(3)) == 20
    assert progress_percent(running, _at(10)) == 20
    assert progress_percent(running, _at(130)) == 57
    assert progress_percent(running, _at(10_000)) == 95
    assert progress_percent(apply_status_update(running, running.task_id, RpaTaskState.FAILED, now=_at(20)), _at(20)) == 100


def test_has_active_tasks():
    done = apply_status_update(_queued(), "encova_sub-1_1", RpaTaskState.COMPLETED, now=_at(30))

    assert has_active_tasks({"encova": _queued(), "guard": done})
    assert not has_active_tasks({"encova": done})
    assert not has_active_tasks({})


def test_format_elapsed():
    assert format_elapsed(None, None, T0) == ""
    assert format_elapsed(T0, None, _at(42)) == "42s"
    assert format_elapsed(T0, _at(75), _at(9999)) == "1m 15s"
    assert format_elapsed(T0, None, _at(3725)) == "1h 2m 5s"
