"""RPA task lifecycle: authoritative transitions and presentation-only simulation.

Two sources feed a task's displayed state:

- authoritative updates (bot webhooks, dispatch) go through `apply_status_update`
  and are persisted;
- `simulate_progress` derives a local copy that advances queued -> accepted ->
  running after fixed dwell times. It is never persisted and is recomputed from
  the latest authoritative snapshot on every read, so a real update always wins.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

from src.integrations.contracts.carriers import (
    STATE_ORDER,
    RpaTaskResult,
    RpaTaskState,
    RpaTaskStatus,
)

ACCEPT_DWELL_SECONDS = 2.0
RUN_DWELL_SECONDS = 5.0
EXPECTED_RUN_SECONDS = 240.0

DEFAULT_FAILURE_MESSAGE = "Automation failed"

_TIMESTAMP_FIELDS = {
    RpaTaskState.ACCEPTED: "accepted_at",
    RpaTaskState.RUNNING: "running_at",
    RpaTaskState.COMPLETED: "completed_at",
}


class InvalidTransitionError(Exception):
    """A status update that would move a task backwards or out of a terminal state."""

    def __init__(self, task_id: str, current: RpaTaskState, requested: RpaTaskState):
        self.task_id = task_id
        self.current = current
        self.requested = requested
        super().__init__(f"Task {task_id} cannot move from '{current.value}' to '{requested.value}'")


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _latest_stamp(task: RpaTaskStatus) -> datetime:
    stamps = [task.submitted_at, task.accepted_at, task.running_at, task.completed_at]
    return max(as_utc(s) for s in stamps if s is not None)


def apply_status_update(
    current: Optional[RpaTaskStatus],
    task_id: str,
    status: RpaTaskState,
    now: datetime,
    at: Optional[datetime] = None,
    result: Optional[Mapping[str, Any]] = None,
    error: Optional[str] = None,
    error_details: Any = None,
) -> RpaTaskStatus:
    """Return the task after moving it to `status`.

    `at` is when the transition happened according to the reporter (defaults
    to `now`). Skipped intermediate timestamps are back-filled with that time,
    and every stamp is clamped so it never precedes the previous one.

    Raises:
        InvalidTransitionError: the task is terminal, or the move is backwards.
    """
    now = as_utc(now)
    if current is None:
        current = RpaTaskStatus(task_id=task_id, status=RpaTaskState.QUEUED, submitted_at=now)

    if status == current.status:
        return _refresh_same_status(current, result, error, error_details)

    if current.is_terminal:
        raise InvalidTransitionError(current.task_id, current.status, status)
    if status != RpaTaskState.FAILED and STATE_ORDER[status] < STATE_ORDER[current.status]:
        raise InvalidTransitionError(current.task_id, current.status, status)

    updated = current.model_copy(deep=True)
    updated.simulated = False
    if task_id:
        updated.task_id = task_id
    stamp = max(as_utc(at or now), _latest_stamp(current))

    if status == RpaTaskState.FAILED:
        updated.completed_at = updated.completed_at or stamp
    else:
        for state, field_name in _TIMESTAMP_FIELDS.items():
            if STATE_ORDER[state] > STATE_ORDER[status]:
                break
            if getattr(updated, field_name) is None:
                setattr(updated, field_name, stamp)

    updated.status = status
    _apply_outcome(updated, result, error, error_details)
    return updated


def _refresh_same_status(
    task: RpaTaskStatus,
    result: Optional[Mapping[str, Any]],
    error: Optional[str],
    error_details: Any,
) -> RpaTaskStatus:
    # Repeats only fill in outcome fields that were never recorded.
    if task.status == RpaTaskState.COMPLETED and task.result is None and result:
        updated = task.model_copy(deep=True)
        _apply_outcome(updated, result, None, None)
        return updated
    if task.status == RpaTaskState.FAILED and task.error is None:
        updated = task.model_copy(deep=True)
        _apply_outcome(updated, None, error, error_details)
        return updated
    return task


def _apply_outcome(
    task: RpaTaskStatus,
    result: Optional[Mapping[str, Any]],
    error: Optional[str],
    error_details: Any,
) -> None:
    if task.status == RpaTaskState.COMPLETED:
        task.result = RpaTaskResult.model_validate(dict(result or {}))
        task.error = None
        task.error_details = None
    elif task.status == RpaTaskState.FAILED:
        task.result = None
        task.error = error or DEFAULT_FAILURE_MESSAGE
        task.error_details = error_details
    else:
        task.result = None
        task.error = None
        task.error_details = None


def merge_task_map(
    existing: Mapping[str, RpaTaskStatus],
    updates: Mapping[str, RpaTaskStatus],
) -> Dict[str, RpaTaskStatus]:
    """Entries in `updates` replace their carrier's slot; all other carriers are kept."""
    merged = dict(existing)
    merged.update(updates)
    return merged


def has_active_tasks(tasks: Mapping[str, Optional[RpaTaskStatus]]) -> bool:
    return any(task is not None and not task.is_terminal for task in tasks.values())


def simulate_progress(
    task: RpaTaskStatus,
    now: datetime,
    accept_dwell_seconds: float = ACCEPT_DWELL_SECONDS,
    run_dwell_seconds: float = RUN_DWELL_SECONDS,
) -> RpaTaskStatus:
    """Presentation-only advance of a non-terminal task. The input is not modified."""
    if task.status not in (RpaTaskState.QUEUED, RpaTaskState.ACCEPTED):
        return task

    now = as_utc(now)
    simulated = task.model_copy(deep=True)

    if simulated.status == RpaTaskState.QUEUED:
        accepted_at = as_utc(simulated.submitted_at) + timedelta(seconds=accept_dwell_seconds)
        if now < accepted_at:
            return task
        simulated.status = RpaTaskState.ACCEPTED
        simulated.accepted_at = accepted_at
        simulated.simulated = True

    running_at = as_utc(simulated.accepted_at or simulated.submitted_at) + timedelta(seconds=run_dwell_seconds)
    if now >= running_at:
        simulated.status = RpaTaskState.RUNNING
        simulated.running_at = running_at
        simulated.simulated = True

    return simulated if simulated.simulated else task


def progress_percent(
    task: Optional[RpaTaskStatus],
    now: datetime,
    expected_run_seconds: float = EXPECTED_RUN_SECONDS,
) -> int:
    """Progress-bar value; not a real progress signal."""
    if task is None:
        return 0
    if task.is_terminal:
        return 100
    if task.status == RpaTaskState.QUEUED:
        return 5
    if task.status == RpaTaskState.ACCEPTED:
        return 20

    started = as_utc(task.running_at or task.accepted_at or task.submitted_at)
    elapsed = max((as_utc(now) - started).total_seconds(), 0.0)
    fraction = min(elapsed / expected_run_seconds, 1.0) if expected_run_seconds > 0 else 1.0
    return int(20 + fraction * 75)


def format_elapsed(start: Optional[datetime], end: Optional[datetime], now: datetime) -> str:
    if start is None:
        return ""
    seconds = int((as_utc(end or now) - as_utc(start)).total_seconds())
    seconds = max(seconds, 0)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"
