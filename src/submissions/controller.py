"""Controller for submissions: insured records, dispatch, rating sheets and bot status updates."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from src.integrations.contracts.carriers import (
    DEFAULT_CARRIERS,
    CarrierType,
    RpaTaskState,
    RpaTaskStatus,
    dump_task_map,
    load_task_map,
)
from src.integrations.contracts.insured import InsuredRecord
from src.integrations.policy.dispatch_service import DispatchReport, DispatchService
from src.integrations.policy.rating_sheet_service import RatingSheetService
from src.submissions.normalizer import normalize_insured_info
from src.submissions.status_tracker import InvalidTransitionError, apply_status_update
from src.submissions.task_store import SubmissionNotFoundError, update_task_map
from src.submissions.validation import SubmissionValidationError, validate_submission

logger = logging.getLogger(__name__)


class SubmissionController:
    def __init__(
        self,
        db,
        dispatch_service: DispatchService,
        rating_sheet_service: Optional[RatingSheetService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.dispatch_service = dispatch_service
        self.rating_sheet_service = rating_sheet_service
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # Insured information
    def create_insured_information(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        record = normalize_insured_info(payload)
        if not record.corporation_name:
            raise SubmissionValidationError("Corporation name is required.", field="corporationName")
        stored = self.db.create_insured_information(payload, corporation_name=record.corporation_name)
        return self._insured_to_dict(stored)

    def get_insured_information(self, insured_info_id: str) -> Optional[Dict[str, Any]]:
        stored = self.db.get_insured_information(insured_info_id)
        return self._insured_to_dict(stored) if stored else None

    # Submissions
    def create_submission(
        self,
        business_name: Optional[str] = None,
        business_type_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        insured_info_id: Optional[str] = None,
        insured_info_snapshot: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if insured_info_id:
            insured = self.db.get_insured_information(insured_info_id)
            if insured is None:
                raise SubmissionValidationError(
                    f"Insured information {insured_info_id} not found", field="insured_info_id"
                )
            if insured_info_snapshot is None:
                insured_info_snapshot = dict(insured.data)

        name = (business_name or "").strip()
        if not name and insured_info_snapshot:
            name = normalize_insured_info(insured_info_snapshot).corporation_name
        if not name:
            raise SubmissionValidationError("Business name is required.", field="business_name")

        submission = self.db.create_submission(
            business_name=name,
            business_type_id=business_type_id,
            agent_id=agent_id,
            insured_info_id=insured_info_id,
            insured_info_snapshot=insured_info_snapshot,
        )
        logger.info("Created submission %s for %s", submission.id, name)
        return self._to_dict(submission)

    def get_submission(self, submission_id: str) -> Optional[Dict[str, Any]]:
        submission = self.db.get_submission(submission_id)
        return self._to_dict(submission) if submission else None

    def list_submissions(self, limit: int = 100) -> List[Dict[str, Any]]:
        return [self._to_dict(s) for s in self.db.list_submissions(limit=limit)]

    def load_insured_record(self, submission_id: str) -> InsuredRecord:
        """Fresh normalized record: frozen snapshot first, live insured record otherwise."""
        submission = self.db.get_submission(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)

        raw = submission.insured_info_snapshot
        if not raw and submission.insured_info_id:
            insured = self.db.get_insured_information(submission.insured_info_id)
            raw = insured.data if insured else None
        return normalize_insured_info(raw, fallback_business_name=submission.business_name)

    # Dispatch
    async def auto_submit(self, submission_id: str, carriers: Optional[Sequence[Any]] = None) -> DispatchReport:
        selected = parse_carriers(carriers)
        record = self.load_insured_record(submission_id)
        validate_submission(record, selected, today=self._clock().date())
        return await self.dispatch_service.dispatch(submission_id, record, selected)

    async def create_rating_sheet(self, submission_id: str) -> Dict[str, Any]:
        if self.rating_sheet_service is None:
            raise RuntimeError("Rating sheet service is not configured")
        record = self.load_insured_record(submission_id)
        return await self.rating_sheet_service.create_rating_sheet(submission_id, record)

    # Bot status updates
    def apply_rpa_update(
        self,
        submission_id: str,
        carrier: CarrierType,
        task_id: str,
        status: RpaTaskState,
        completed_at: Optional[datetime] = None,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        error_details: Any = None,
    ) -> Tuple[RpaTaskStatus, Dict[str, RpaTaskStatus]]:
        """Apply one authoritative status report and persist it.

        Raises:
            SubmissionNotFoundError: unknown submission.
            InvalidTransitionError: the report would move the task backwards.
        """
        now = self._clock()

        def _transition(current: Dict[str, RpaTaskStatus]) -> Dict[str, RpaTaskStatus]:
            existing = current.get(carrier.value)
            updated = apply_status_update(
                existing,
                task_id=task_id,
                status=status,
                now=now,
                at=completed_at if status.is_terminal else None,
                result=result,
                error=error,
                error_details=error_details,
            )
            if existing is not None and updated == existing:
                return {}
            return {carrier.value: updated}

        try:
            tasks = update_task_map(self.db, submission_id, _transition)
        except InvalidTransitionError as exc:
            logger.warning("Rejected %s update for submission %s: %s", carrier.value, submission_id, exc)
            raise

        task = tasks[carrier.value]
        logger.info(
            "Updated %s task %s for submission %s to %s",
            carrier.value,
            task.task_id,
            submission_id,
            task.status.value,
        )
        return task, tasks

    @staticmethod
    def _to_dict(submission) -> Dict[str, Any]:
        return {
            "id": submission.id,
            "business_name": submission.business_name,
            "business_type_id": submission.business_type_id,
            "agent_id": submission.agent_id,
            "status": submission.status,
            "insured_info_id": submission.insured_info_id,
            "insured_info_snapshot": submission.insured_info_snapshot,
            "rpa_tasks": dump_task_map(load_task_map(submission.rpa_tasks)),
            "rpa_tasks_version": submission.rpa_tasks_version,
            "created_at": _iso(submission.created_at),
            "updated_at": _iso(submission.updated_at),
        }

    @staticmethod
    def _insured_to_dict(insured) -> Dict[str, Any]:
        record = normalize_insured_info(insured.data, fallback_business_name=insured.corporation_name)
        return {
            "id": insured.id,
            "data": insured.data,
            "normalized": record.to_dict(),
            "created_at": _iso(insured.created_at),
        }


def parse_carriers(carriers: Optional[Sequence[Any]]) -> List[CarrierType]:
    """None selects every carrier; an empty or unknown selection is a validation error."""
    if carriers is None:
        return list(DEFAULT_CARRIERS)
    if isinstance(carriers, (str, bytes)):
        raise SubmissionValidationError("Carriers must be a list of carrier names.", field="carriers")
    if not carriers:
        raise SubmissionValidationError("At least one carrier must be selected.", field="carriers")

    selected: List[CarrierType] = []
    for value in carriers:
        try:
            carrier = CarrierType.parse(value)
        except ValueError as exc:
            raise SubmissionValidationError(str(exc), field="carriers") from None
        if carrier not in selected:
            selected.append(carrier)
    return selected


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
