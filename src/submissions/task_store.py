"""Versioned read-merge-write of a submission's rpa_tasks map."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping

from src.database.postgres import StaleRpaTasksError
from src.integrations.contracts.carriers import RpaTaskStatus, dump_task_map, load_task_map
from src.submissions.status_tracker import merge_task_map

logger = logging.getLogger(__name__)

MAX_WRITE_ATTEMPTS = 3

TaskUpdater = Callable[[Dict[str, RpaTaskStatus]], Mapping[str, RpaTaskStatus]]


class SubmissionNotFoundError(LookupError):
    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__(f"Submission {submission_id} not found")


def read_task_map(db: Any, submission_id: str) -> Dict[str, RpaTaskStatus]:
    submission = db.get_submission(submission_id)
    if submission is None:
        raise SubmissionNotFoundError(submission_id)
    return load_task_map(submission.rpa_tasks)


def update_task_map(
    db: Any,
    submission_id: str,
    updater: TaskUpdater,
    max_attempts: int = MAX_WRITE_ATTEMPTS,
) -> Dict[str, RpaTaskStatus]:
    """Merge `updater(current_tasks)` into the stored map and return the result.

    The updater is re-run against a fresh read whenever another writer got
    there first. Carriers the updater does not return are left untouched.
    """
    for attempt in range(1, max_attempts + 1):
        submission = db.get_submission(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)

        current = load_task_map(submission.rpa_tasks)
        updates = updater(dict(current))
        if not updates:
            return current

        merged = merge_task_map(current, updates)
        try:
            db.update_rpa_tasks(submission_id, dump_task_map(merged), expected_version=submission.rpa_tasks_version)
        except StaleRpaTasksError as exc:
            if attempt == max_attempts:
                raise
            logger.warning("Retrying rpa_tasks write for %s (attempt %d): %s", submission_id, attempt, exc)
            continue
        except KeyError:
            raise SubmissionNotFoundError(submission_id) from None
        return merged

    raise RuntimeError("unreachable")  # pragma: no cover
