from datetime import datetime
from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.api.dependencies import get_controller
from src.error_handler import ErrorHandler
from src.integrations.contracts.carriers import CarrierType, RpaTaskState
from src.submissions.controller import SubmissionController
from src.submissions.status_tracker import InvalidTransitionError
from src.submissions.task_store import SubmissionNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()
error_handler = ErrorHandler()

_STATUS_VALUES = ", ".join(s.value for s in RpaTaskState)
_CARRIER_VALUES = ", ".join(c.value for c in CarrierType)


class RpaCompletePayload(BaseModel):
    carrier: Optional[str] = None
    task_id: Optional[str] = None
    submission_id: Optional[str] = None
    status: Optional[str] = None
    completed_at: Optional[datetime] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_details: Optional[Any] = None


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@router.get("/webhooks/rpa-complete", tags=["Webhooks"])
async def rpa_webhook_ready():
    return {
        "status": "ok",
        "message": "RPA webhook endpoint is ready",
        "endpoint": "/api/v1/webhooks/rpa-complete",
        "method": "POST",
    }


@router.post("/webhooks/rpa-complete", tags=["Webhooks"])
async def rpa_complete(payload: RpaCompletePayload, controller: SubmissionController = Depends(get_controller)):
    """
    Authoritative status report from a carrier bot.
    completed_at is required only for the final statuses (completed/failed).
    """
    requires_completed_at = payload.status in (RpaTaskState.COMPLETED.value, RpaTaskState.FAILED.value)
    if (
        not payload.carrier
        or not payload.task_id
        or not payload.submission_id
        or not payload.status
        or (requires_completed_at and not payload.completed_at)
    ):
        suffix = ", completed_at" if requires_completed_at else ""
        return _bad_request(f"Missing required fields: carrier, task_id, submission_id, status{suffix}")

    try:
        carrier = CarrierType.parse(payload.carrier)
    except ValueError:
        return _bad_request(f"Invalid carrier. Must be one of: {_CARRIER_VALUES}")
    try:
        task_status = RpaTaskState(payload.status.strip().lower())
    except ValueError:
        return _bad_request(f"Invalid status. Must be one of: {_STATUS_VALUES}")

    try:
        task, _tasks = controller.apply_rpa_update(
            submission_id=payload.submission_id,
            carrier=carrier,
            task_id=payload.task_id,
            status=task_status,
            completed_at=payload.completed_at,
            result=payload.result,
            error=payload.error,
            error_details=payload.error_details,
        )
    except SubmissionNotFoundError:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Submission not found"})
    except InvalidTransitionError as e:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"error": str(e), "current_status": e.current.value, "requested_status": e.requested.value},
        )
    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_handler.handle_exception(e, context=payload.model_dump(mode="json")),
        )

    return {
        "success": True,
        "message": f"RPA task status updated for {carrier.value}",
        "carrier": carrier.value,
        "status": task.status.value,
        "task": task.to_record(),
    }
