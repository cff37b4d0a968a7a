"""
Lightweight in-memory PostgresDB replacement for local development.

This provides the same interface as the SQLAlchemy-backed store in
`src.database.postgres_real` so the API and dispatch flows can run without a
real database. It is NOT intended for production use.
"""

from __future__ import annotations

import copy
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StaleRpaTasksError(Exception):
    """The submission's task map changed since it was read."""

    def __init__(self, submission_id: str, expected_version: int, actual_version: int):
        self.submission_id = submission_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"rpa_tasks for submission {submission_id} is at version {actual_version}, expected {expected_version}"
        )


@dataclass
class InsuredInformation:
    id: str
    corporation_name: str
    data: Dict[str, Any]
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class Submission:
    id: str
    business_name: str
    business_type_id: Optional[str] = None
    agent_id: Optional[str] = None
    status: str = "draft"
    insured_info_id: Optional[str] = None
    insured_info_snapshot: Optional[Dict[str, Any]] = None
    rpa_tasks: Dict[str, Any] = field(default_factory=dict)
    rpa_tasks_version: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


class PostgresDB:
    """
    In-memory stand-in for a Postgres-backed data access layer.

    Reads hand out copies so callers can never mutate stored state without
    going through the write methods.
    """

    def __init__(self) -> None:
        self._insured: Dict[str, InsuredInformation] = {}
        self._submissions: Dict[str, Submission] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Schema / lifecycle
    # ------------------------------------------------------------------ #
    def create_tables(self) -> None:
        """
        No-op for the in-memory implementation. Kept for compatibility
        with the startup hook in `src/api/main.py`.
        """
        return None

    def ping(self) -> bool:
        return True

    # ------------------------------------------------------------------ #
    # Insured information
    # ------------------------------------------------------------------ #
    def create_insured_information(self, data: Dict[str, Any], corporation_name: str = "") -> InsuredInformation:
        record = InsuredInformation(
            id=str(uuid.uuid4()),
            corporation_name=corporation_name,
            data=copy.deepcopy(data),
        )
        self._insured[record.id] = record
        return copy.deepcopy(record)

    def get_insured_information(self, insured_info_id: str) -> Optional[InsuredInformation]:
        record = self._insured.get(insured_info_id)
        return copy.deepcopy(record) if record else None

    # ------------------------------------------------------------------ #
    # Submissions
    # ------------------------------------------------------------------ #
    def create_submission(
        self,
        *,
        business_name: str,
        business_type_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        insured_info_id: Optional[str] = None,
        insured_info_snapshot: Optional[Dict[str, Any]] = None,
        status: str = "draft",
    ) -> Submission:
        submission = Submission(
            id=str(uuid.uuid4()),
            business_name=business_name,
            business_type_id=business_type_id,
            agent_id=agent_id,
            status=status,
            insured_info_id=insured_info_id,
            insured_info_snapshot=copy.deepcopy(insured_info_snapshot),
        )
        self._submissions[submission.id] = submission
        return copy.deepcopy(submission)

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        submission = self._submissions.get(submission_id)
        return copy.deepcopy(submission) if submission else None

    def list_submissions(self, limit: int = 100) -> List[Submission]:
        ordered = sorted(self._submissions.values(), key=lambda s: s.created_at, reverse=True)
        return [copy.deepcopy(s) for s in ordered[:limit]]

    def update_rpa_tasks(
        self,
        submission_id: str,
        rpa_tasks: Dict[str, Any],
        expected_version: int,
    ) -> Submission:
        """Replace the task map if nobody wrote it since `expected_version` was read."""
        with self._lock:
            submission = self._submissions.get(submission_id)
            if submission is None:
                raise KeyError(submission_id)
            if submission.rpa_tasks_version != expected_version:
                raise StaleRpaTasksError(submission_id, expected_version, submission.rpa_tasks_version)
            submission.rpa_tasks = copy.deepcopy(rpa_tasks)
            submission.rpa_tasks_version += 1
            submission.updated_at = _utcnow()
            return copy.deepcopy(submission)
