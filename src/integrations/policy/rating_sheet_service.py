"""
Rating Sheet Service

Populates the premium rating spreadsheet from an InsuredRecord, reads the
computed premiums back, and records the sheet as a completed task next to the
carrier bots.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import httpx

from src.integrations.contracts.carriers import SPREADSHEET_TASK_KEY, RpaTaskState, RpaTaskStatus, dump_task_map
from src.integrations.contracts.insured import InsuredRecord
from src.integrations.payload_builders.novatae import EFFECTIVE_DATE_OFFSET_DAYS, build_rating_sheet_request
from src.integrations.policy.response_wrappers import IntegrationResponseError
from src.submissions.status_tracker import apply_status_update
from src.submissions.task_store import update_task_map
from src.submissions.validation import SubmissionValidationError

logger = logging.getLogger(__name__)


class RatingSheetError(Exception):
    """The rating sheet service failed or answered with something unusable."""


class RatingSheetService:
    def __init__(
        self,
        sheet_client: Any,
        db: Any,
        effective_date_offset_days: int = EFFECTIVE_DATE_OFFSET_DAYS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.sheet_client = sheet_client
        self.db = db
        self.effective_date_offset_days = effective_date_offset_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def create_rating_sheet(self, submission_id: str, record: InsuredRecord) -> Dict[str, Any]:
        if not record.corporation_name:
            raise SubmissionValidationError("Corporation name is required.", field="corporationName")
        if not record.address:
            raise SubmissionValidationError("Address is required.", field="address")

        now = self._clock()
        request = build_rating_sheet_request(record, submission_id, now, self.effective_date_offset_days)
        logger.info("Creating rating sheet for submission %s", submission_id)
        logger.debug("Rating sheet request: %s", request)

        try:
            sheet = await self.sheet_client.create_rating_sheet(request)
        except httpx.HTTPStatusError as e:
            logger.error("Rating sheet service returned %s: %s", e.response.status_code, e.response.text)
            raise RatingSheetError(f"Rating sheet service returned HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Request error connecting to rating sheet service: %s", e)
            raise RatingSheetError(f"Could not reach rating sheet service: {e}") from e
        except IntegrationResponseError as e:
            logger.error("Malformed rating sheet response: %s (%s)", e, e.payload)
            raise RatingSheetError(f"Malformed rating sheet response: {e}") from e
        except ValueError as e:
            logger.error("Rating sheet service unavailable: %s", e)
            raise RatingSheetError(str(e)) from e

        logger.info("Rating sheet ready for %s: %s", submission_id, sheet.sheet_url)

        def _record_sheet(current: Dict[str, RpaTaskStatus]) -> Dict[str, RpaTaskStatus]:
            existing = current.get(SPREADSHEET_TASK_KEY)
            if existing is not None and existing.is_terminal:
                # A new sheet supersedes the previous one.
                existing = None
            task = apply_status_update(
                existing,
                task_id=request["task_id"],
                status=RpaTaskState.COMPLETED,
                now=now,
                result={"sheet_url": sheet.sheet_url, "message": "Rating sheet created"},
            )
            return {SPREADSHEET_TASK_KEY: task}

        rpa_tasks = update_task_map(self.db, submission_id, _record_sheet)

        return {
            "success": True,
            "sheet_url": sheet.sheet_url,
            "sheet_id": sheet.sheet_id,
            "premiums": sheet.premiums.model_dump(exclude_none=True),
            "rpa_tasks": dump_task_map(rpa_tasks),
        }
