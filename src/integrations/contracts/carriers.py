"""
Carrier contracts.

Defines the shapes shared by every carrier integration:
- which carrier bots exist (CarrierType)
- the lifecycle of one automation run (RpaTaskState / RpaTaskStatus)
- the per-carrier outcome of one dispatch call (CarrierSubmissionResult)

These contracts must be used by both:
- clients/mocks/rpa_bots.py (offline bot responses for development/testing)
- clients/real_http/rpa_bots.py (real webhook calls)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CarrierType(str, Enum):
    ENCOVA = "encova"
    GUARD = "guard"
    COLUMBIA = "columbia"

    @classmethod
    def parse(cls, value: Any) -> "CarrierType":
        """Resolve a carrier from its wire name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown carrier '{value}'. Expected one of: {', '.join(c.value for c in cls)}")


# Default dispatch set when the caller does not name carriers.
DEFAULT_CARRIERS: List[CarrierType] = list(CarrierType)

# Spreadsheet rating is tracked next to the bots in the same task map.
SPREADSHEET_TASK_KEY = "novatae"


class RpaTaskState(str, Enum):
    QUEUED = "queued"
    ACCEPTED = "accepted"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RpaTaskState.COMPLETED, RpaTaskState.FAILED)


# Forward order of the non-failure states.
STATE_ORDER: Dict[RpaTaskState, int] = {
    RpaTaskState.QUEUED: 0,
    RpaTaskState.ACCEPTED: 1,
    RpaTaskState.RUNNING: 2,
    RpaTaskState.COMPLETED: 3,
}


class RpaTaskResult(BaseModel):
    """Carrier-specific success payload kept on a completed task."""

    model_config = ConfigDict(extra="allow")

    message: str = "Automation completed successfully"
    policy_code: Optional[str] = None
    quote_url: Optional[str] = None
    account_number: Optional[str] = None
    sheet_url: Optional[str] = None


class RpaTaskStatus(BaseModel):
    """One automation run for a (submission, carrier) pair, persisted inside the submission."""

    task_id: str
    status: RpaTaskState = RpaTaskState.QUEUED
    submitted_at: datetime
    accepted_at: Optional[datetime] = None
    running_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[RpaTaskResult] = None
    error: Optional[str] = None
    error_details: Optional[Any] = None
    simulated: bool = Field(default=False, description="Set only on client-side simulated copies")

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready dict for storage and API responses."""
        data = self.model_dump(mode="json", exclude_none=True)
        if not self.simulated:
            data.pop("simulated", None)
        return data

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "RpaTaskStatus":
        return cls.model_validate(record)


@dataclass
class CarrierSubmissionResult:
    """Outcome of one outbound carrier call; failures never escape as exceptions."""

    carrier: CarrierType
    success: bool
    task_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def status(self) -> Optional[str]:
        value = self.data.get("status")
        return str(value).strip().lower() if value else None


class DispatchOutcome(str, Enum):
    ALL_SUCCEEDED = "all_succeeded"
    PARTIAL_SUCCESS = "partial_success"
    ALL_FAILED = "all_failed"


def load_task_map(raw: Optional[Dict[str, Any]]) -> Dict[str, RpaTaskStatus]:
    """Parse a persisted rpa_tasks map, skipping empty slots."""
    tasks: Dict[str, RpaTaskStatus] = {}
    for key, value in (raw or {}).items():
        if not value:
            continue
        tasks[key] = value if isinstance(value, RpaTaskStatus) else RpaTaskStatus.from_record(value)
    return tasks


def dump_task_map(tasks: Dict[str, RpaTaskStatus]) -> Dict[str, Dict[str, Any]]:
    return {key: task.to_record() for key, task in tasks.items()}
