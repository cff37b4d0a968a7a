"""
Carrier Dispatch Service

Fans a validated InsuredRecord out to the selected carrier bots in parallel,
aggregates the per-carrier outcomes, and records a task entry for every carrier
that accepted the submission. Includes:
- Payload building per carrier (payload_builders registry)
- Concurrent bot calls with per-carrier failure isolation
- Full / partial / failed aggregation
- One versioned write of the task map after all calls resolve
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from src.integrations.contracts.carriers import (
    CarrierSubmissionResult,
    CarrierType,
    DispatchOutcome,
    RpaTaskState,
    RpaTaskStatus,
    dump_task_map,
)
from src.integrations.contracts.insured import InsuredRecord
from src.integrations.payload_builders import build_payload
from src.submissions.task_store import update_task_map

logger = logging.getLogger(__name__)

_HTTP_STATUS = {
    DispatchOutcome.ALL_SUCCEEDED: 200,
    DispatchOutcome.PARTIAL_SUCCESS: 207,
    DispatchOutcome.ALL_FAILED: 502,
}


@dataclass
class DispatchReport:
    submission_id: str
    results: List[CarrierSubmissionResult]
    rpa_tasks: Dict[str, RpaTaskStatus] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def outcome(self) -> DispatchOutcome:
        if self.results and self.success_count == len(self.results):
            return DispatchOutcome.ALL_SUCCEEDED
        if self.success_count > 0:
            return DispatchOutcome.PARTIAL_SUCCESS
        return DispatchOutcome.ALL_FAILED

    @property
    def success(self) -> bool:
        return self.outcome == DispatchOutcome.ALL_SUCCEEDED

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.outcome]

    @property
    def message(self) -> str:
        total = len(self.results)
        if self.outcome == DispatchOutcome.ALL_SUCCEEDED:
            return f"Successfully submitted to {total} carrier{'s' if total > 1 else ''}"
        if self.outcome == DispatchOutcome.PARTIAL_SUCCESS:
            return f"Partial success: {self.success_count}/{total} carriers"
        return "All submissions failed"

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "results": {r.carrier.value: _result_entry(r) for r in self.results},
            "rpa_tasks": dump_task_map(self.rpa_tasks),
        }


def _result_entry(result: CarrierSubmissionResult) -> Dict[str, Any]:
    data = result.data
    if result.success:
        entry: Dict[str, Any] = {
            "success": True,
            "message": data.get("message") or "Submitted successfully",
            "taskId": result.task_id,
            "status": data.get("status"),
        }
        if data.get("account_created"):
            entry.update({
                "accountCreated": True,
                "accountNumber": data.get("account_number"),
                "quoteUrl": data.get("quote_url"),
            })
        if data.get("policy_code"):
            entry["policyCode"] = data["policy_code"]
        if data.get("quotation_url"):
            entry["quotationUrl"] = data["quotation_url"]
    else:
        entry = {
            "success": False,
            "message": result.error or "Submission failed",
            "errorType": result.error_type,
        }
    return {key: value for key, value in entry.items() if value is not None}


class DispatchService:
    def __init__(self, bot_client: Any, db: Any, clock: Optional[Callable[[], datetime]] = None):
        self.bot_client = bot_client
        self.db = db
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def dispatch(
        self,
        submission_id: str,
        record: InsuredRecord,
        carriers: Iterable[CarrierType],
    ) -> DispatchReport:
        """
        Submit one record to every selected carrier and persist the new tasks.

        The caller is responsible for validation; this method never raises for
        a carrier failure, only for storage errors.
        """
        selected = list(dict.fromkeys(carriers))
        now = self._clock()
        logger.info("Dispatching submission %s to carriers: %s", submission_id, [c.value for c in selected])

        payloads: Dict[CarrierType, Dict[str, Any]] = {}
        for carrier in selected:
            payloads[carrier] = build_payload(carrier, record, submission_id, now)
            logger.debug("%s payload for %s: %s", carrier.value, submission_id, payloads[carrier])

        results = list(await asyncio.gather(*(self._submit_one(c, payloads[c]) for c in selected)))

        for result in results:
            if result.success:
                logger.info("%s accepted submission %s (task %s)", result.carrier.value, submission_id, result.task_id)
            else:
                logger.error(
                    "%s submission failed for %s [%s]: %s",
                    result.carrier.value,
                    submission_id,
                    result.error_type,
                    result.error,
                )

        new_tasks: Dict[str, RpaTaskStatus] = {}
        for result in results:
            if not result.success:
                continue
            if not result.task_id:
                result.task_id = payloads[result.carrier]["task_id"]
            new_tasks[result.carrier.value] = _initial_task(result, now)

        rpa_tasks = update_task_map(self.db, submission_id, lambda _current: new_tasks)
        report = DispatchReport(submission_id=submission_id, results=results, rpa_tasks=rpa_tasks)
        logger.info("Dispatch for %s finished: %s (%s)", submission_id, report.outcome.value, report.message)
        return report

    async def _submit_one(self, carrier: CarrierType, payload: Dict[str, Any]) -> CarrierSubmissionResult:
        try:
            return await self.bot_client.submit(carrier, payload)
        except Exception as exc:
            logger.exception("Unexpected error submitting to %s", carrier.value)
            return CarrierSubmissionResult(
                carrier=carrier,
                success=False,
                error=str(exc) or "Submission failed",
                error_type="network_error",
            )


def _initial_task(result: CarrierSubmissionResult, now: datetime) -> RpaTaskStatus:
    if result.status == RpaTaskState.ACCEPTED.value:
        return RpaTaskStatus(task_id=result.task_id, status=RpaTaskState.ACCEPTED, submitted_at=now, accepted_at=now)
    return RpaTaskStatus(task_id=result.task_id, status=RpaTaskState.QUEUED, submitted_at=now)
