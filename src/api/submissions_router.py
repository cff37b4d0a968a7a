"""Submission endpoints: insured information, submissions, auto-submit and rating sheets."""

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.api.dependencies import get_controller
from src.error_handler import ErrorHandler
from src.integrations.policy.rating_sheet_service import RatingSheetError
from src.submissions.controller import SubmissionController
from src.submissions.task_store import SubmissionNotFoundError
from src.submissions.validation import SubmissionValidationError

logger = logging.getLogger(__name__)

api = APIRouter()
error_handler = ErrorHandler()


class SubmissionCreate(BaseModel):
    business_name: Optional[str] = Field(default=None, description="Named insured; defaults to the record's corporation name")
    business_type_id: Optional[str] = None
    agent_id: Optional[str] = None
    insured_info_id: Optional[str] = None
    insured_info_snapshot: Optional[Dict[str, Any]] = Field(
        default=None, description="Insured record frozen at creation time, in either historical shape"
    )


class AutoSubmitRequest(BaseModel):
    # A bare string is accepted here so the carrier parser can reject it with a 400.
    carriers: Optional[Union[List[Any], str]] = Field(
        default=None, description="Carrier names; omit to submit to every carrier"
    )


def _not_found(submission_id: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Submission not found", "id": submission_id})


# Insured information
@api.post("/insured-info", tags=["Insured Information"], status_code=status.HTTP_201_CREATED)
async def create_insured_info(
    payload: Dict[str, Any] = Body(..., description="Insured record, camelCase or column-cased"),
    controller: SubmissionController = Depends(get_controller),
):
    try:
        return controller.create_insured_information(payload)
    except SubmissionValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=e.to_dict())


@api.get("/insured-info/{insured_info_id}", tags=["Insured Information"])
async def get_insured_info(insured_info_id: str, controller: SubmissionController = Depends(get_controller)):
    record = controller.get_insured_information(insured_info_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Insured information not found")
    return record


# Submissions
@api.post("/submissions", tags=["Submissions"], status_code=status.HTTP_201_CREATED)
async def create_submission(request: SubmissionCreate, controller: SubmissionController = Depends(get_controller)):
    try:
        return controller.create_submission(**request.model_dump())
    except SubmissionValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=e.to_dict())


@api.get("/submissions", tags=["Submissions"])
async def list_submissions(
    limit: int = Query(100, ge=1, le=500),
    controller: SubmissionController = Depends(get_controller),
):
    submissions = controller.list_submissions(limit=limit)
    return {"submissions": submissions, "count": len(submissions)}


@api.get("/submissions/{submission_id}", tags=["Submissions"])
async def get_submission(submission_id: str, controller: SubmissionController = Depends(get_controller)):
    """Status read: the submission including its current rpa_tasks map."""
    submission = controller.get_submission(submission_id)
    if not submission:
        return _not_found(submission_id)
    return submission


@api.post("/submissions/{submission_id}/auto-submit", tags=["Dispatch"])
async def auto_submit(
    submission_id: str,
    request: Optional[AutoSubmitRequest] = None,
    controller: SubmissionController = Depends(get_controller),
):
    """
    Validate the submission and send it to the selected carrier bots.

    200 when every carrier accepted, 207 on partial success, 502 when every
    carrier failed.
    """
    carriers = request.carriers if request else None
    logger.info("Auto-submit requested for %s, carriers=%s", submission_id, carriers)
    try:
        report = await controller.auto_submit(submission_id, carriers)
    except SubmissionValidationError as e:
        logger.info("Auto-submit for %s rejected: %s (field=%s)", submission_id, e.message, e.field)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=e.to_dict())
    except SubmissionNotFoundError:
        return _not_found(submission_id)
    except Exception as e:
        context = {"submission_id": submission_id, "carriers": carriers}
        try:
            context["record"] = controller.load_insured_record(submission_id).to_dict()
        except Exception:
            logger.debug("Could not load insured record for error context", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_handler.handle_exception(e, context=context),
        )

    return JSONResponse(status_code=report.http_status, content=report.to_response())


@api.post("/submissions/{submission_id}/novatae-submit", tags=["Dispatch"])
async def novatae_submit(submission_id: str, controller: SubmissionController = Depends(get_controller)):
    """Populate the premium rating sheet and return its URL and premiums."""
    try:
        return await controller.create_rating_sheet(submission_id)
    except SubmissionValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=e.to_dict())
    except SubmissionNotFoundError:
        return _not_found(submission_id)
    except RatingSheetError as e:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"success": False, "error": str(e)})
    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_handler.handle_exception(e, context={"submission_id": submission_id}),
        )
