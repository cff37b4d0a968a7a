#!/usr/bin/env python3
"""
Run a full insured record → validation → carrier dispatch → status update flow
against the in-memory store and mock bots, printing each stage to the terminal.

Usage (from repo root):
  python scripts/run_dispatch_demo.py
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.database.postgres import PostgresDB
from src.integrations.clients.mocks.rpa_bots import MockRatingSheetClient, MockRpaBotClient
from src.integrations.contracts.carriers import CarrierType, RpaTaskState
from src.integrations.payload_builders import build_payload
from src.integrations.policy.dispatch_service import DispatchService
from src.integrations.policy.rating_sheet_service import RatingSheetService
from src.submissions.controller import SubmissionController
from src.submissions.validation import SubmissionValidationError

DEMO_RECORD = {
    "corporation_name": "Peachtree Fuel Stop LLC",
    "dba": "Peachtree Express",
    "address": "1234 Peachtree St NE, Atlanta, GA 30309",
    "contact_name": "Jordan Avery Blake",
    "contact_number": "(404) 555-0199",
    "contact_email": "jordan@peachtreefuel.example",
    "operation_description": "Gas station with convenience store",
    "ownership_type": "LLC",
    "applicant_is": "Owner",
    "fein": "58-3247891",
    "year_built": 1998,
    "total_sq_footage": "3,200",
    "no_of_stories": 1,
    "years_exp_in_business": 12,
    "no_of_mpos": 8,
    "construction_type": "Masonry Non-Combustible",
    "general_liability": {
        "inside_sales_yearly": "$850,000",
        "liquor_sales_yearly": "$120,000",
        "gasoline_sales_yearly": "600000",
    },
    "property_coverage": {
        "building": "$750,000",
        "bpp": "$150,000",
        "bi": "$100,000",
        "canopy": "$80,000",
        "pumps": "$60,000",
        "signs": "$15,000",
    },
}


def setup_logging():
    """Log to terminal at INFO so every stage is visible."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def print_stage(title: str, data: dict | list | str):
    """Print a stage header and data to the terminal."""
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)
    if isinstance(data, (dict, list)):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(data)
    print()


async def main():
    setup_logging()
    db = PostgresDB()
    controller = SubmissionController(
        db,
        dispatch_service=DispatchService(MockRpaBotClient(), db),
        rating_sheet_service=RatingSheetService(MockRatingSheetClient(), db),
    )

    insured = controller.create_insured_information(DEMO_RECORD)
    print_stage("INSURED INFORMATION (normalized)", insured["normalized"])

    submission = controller.create_submission(insured_info_id=insured["id"])
    submission_id = submission["id"]
    print_stage("SUBMISSION CREATED", {"id": submission_id, "business_name": submission["business_name"]})

    record = controller.load_insured_record(submission_id)
    for carrier in CarrierType:
        print_stage(f"{carrier.value.upper()} PAYLOAD", build_payload(carrier, record, submission_id))

    try:
        report = await controller.auto_submit(submission_id)
    except SubmissionValidationError as e:
        print_stage("VALIDATION FAILED", e.to_dict())
        return
    print_stage(f"DISPATCH RESULT (HTTP {report.http_status})", report.to_response())

    now = datetime.now(timezone.utc)
    controller.apply_rpa_update(submission_id, CarrierType.ENCOVA, report.rpa_tasks["encova"].task_id, RpaTaskState.RUNNING)
    controller.apply_rpa_update(
        submission_id,
        CarrierType.ENCOVA,
        report.rpa_tasks["encova"].task_id,
        RpaTaskState.COMPLETED,
        completed_at=now,
        result={"policy_code": "ENC-DEMO-001", "quote_url": "https://encova.example/quotes/ENC-DEMO-001"},
    )
    controller.apply_rpa_update(
        submission_id,
        CarrierType.GUARD,
        report.rpa_tasks["guard"].task_id,
        RpaTaskState.FAILED,
        completed_at=now,
        error="Login to carrier portal failed",
    )
    print_stage("STATUS AFTER BOT WEBHOOKS", controller.get_submission(submission_id)["rpa_tasks"])

    sheet = await controller.create_rating_sheet(submission_id)
    print_stage("RATING SHEET", sheet)


if __name__ == "__main__":
    asyncio.run(main())
