import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from src.integrations.clients.mocks.rpa_bots import MockRatingSheetClient
from src.integrations.clients.real_http.rating_sheets import RealRatingSheetClient
from src.integrations.payload_builders.novatae import build_rating_sheet_cells, build_rating_sheet_request, territory_code
from src.integrations.policy.rating_sheet_service import RatingSheetError, RatingSheetService
from src.submissions.normalizer import normalize_insured_info
from src.submissions.validation import SubmissionValidationError
from src.utils.config_loader import SpreadsheetConfig

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _cells(record, **kwargs):
    return {cell["range"]: cell["value"] for cell in build_rating_sheet_cells(record, NOW, **kwargs)}


def test_rating_cells(insured_payload):
    cells = _cells(normalize_insured_info(insured_payload))

    assert cells["Rating!C5"] == "Peachtree Fuel Stop LLC"
    assert cells["Rating!C6"] == "Peachtree Express"
    assert cells["Rating!C9"] == "03/03/2026"
    assert cells["Rating!C24"] == "1998"
    assert cells["Rating!C27"] == "GA"
    assert cells["Rating!C28"] == "502"
    assert cells["Rating!C30"] == 750000.0
    assert cells["Rating!C33"] == 100000.0
    assert cells["Rating!F5"] == 120000.0
    assert cells["Rating!F16"] == 600000.0
    assert cells["Rating!F19"] == 850000.0


def test_zero_coverage_cells_follow_input_truthiness(insured_payload):
    insured_payload["propertyCoverage"] = {**insured_payload["propertyCoverage"], "bpp": 0, "bi": "0"}

    cells = _cells(normalize_insured_info(insured_payload))

    assert "Rating!C31" not in cells
    assert cells["Rating!C33"] == 0.0


def test_sparse_record_skips_empty_inputs():
    record = normalize_insured_info({"corporationName": "Acme", "address": "9 Bay St, Savannah, GA 31401"})
    cells = _cells(record, effective_date_offset_days=0)

    assert cells["Rating!C9"] == "03/01/2026"
    assert cells["Rating!C28"] == "503"
    assert "Rating!C30" not in cells
    assert "Rating!F19" not in cells
    assert "Rating!C6" not in cells


def test_territory_code():
    assert territory_code("GA", "Atlanta") == "502"
    assert territory_code("GA", "East Atlanta") == "502"
    assert territory_code("GA", "Macon") == "503"
    assert territory_code("FL", "Atlanta") == "503"


def test_rating_sheet_request_envelope(insured_payload):
    request = build_rating_sheet_request(normalize_insured_info(insured_payload), "sub-1", NOW)

    assert request["action"] == "create_rating_sheet"
    assert request["task_id"] == f"novatae_sub-1_{int(NOW.timestamp() * 1000)}"
    assert request["sheet_title"] == "Peachtree Fuel Stop LLC - 2026-03-01T12-00-00"


@pytest.mark.asyncio
async def test_rating_sheet_is_tracked_as_a_completed_task(controller, submission_id):
    result = await controller.create_rating_sheet(submission_id)

    assert result["success"] is True
    assert result["sheet_url"].startswith("https://sheets.mock.local/")
    assert result["premiums"]["total_gl_premium"] == pytest.approx(2975.0)
    assert result["premiums"]["total_property_premium"] == pytest.approx(4000.0)
    assert result["premiums"]["total_premium"] == pytest.approx(6975.0)

    task = controller.get_submission(submission_id)["rpa_tasks"]["novatae"]
    assert task["status"] == "completed"
    assert task["result"]["sheet_url"] == result["sheet_url"]


@pytest.mark.asyncio
async def test_new_rating_sheet_supersedes_the_previous_one(db, submission_id, controller):
    await controller.auto_submit(submission_id, ["encova"])
    first = await controller.create_rating_sheet(submission_id)

    later = RatingSheetService(MockRatingSheetClient(), db, clock=lambda: NOW + timedelta(minutes=10))
    second = await later.create_rating_sheet(submission_id, controller.load_insured_record(submission_id))

    tasks = second["rpa_tasks"]
    assert tasks["novatae"]["result"]["sheet_url"] == second["sheet_url"] != first["sheet_url"]
    assert tasks["novatae"]["completed_at"] == (NOW + timedelta(minutes=10)).isoformat().replace("+00:00", "Z")
    assert tasks["encova"]["status"] == "queued"


@pytest.mark.asyncio
async def test_rating_sheet_requires_name_and_address(db):
    service = RatingSheetService(MockRatingSheetClient(), db, clock=lambda: NOW)

    with pytest.raises(SubmissionValidationError) as exc:
        await service.create_rating_sheet("sub-1", normalize_insured_info({"corporationName": "Acme"}))

    assert exc.value.field == "address"


@pytest.mark.asyncio
async def test_real_client_posts_cells_and_reads_premiums(db, submission_id, controller):
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={
            "sheetUrl": "https://docs.example/sheet/abc",
            "sheetId": "abc",
            "premiums": {"totalGLPremium": "$3,100.50", "totalPropertyPremium": 0, "totalPremium": "oops"},
        })

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = RealRatingSheetClient(SpreadsheetConfig(webhook_url="https://sheets.example/hook"), http_client=http_client)
        service = RatingSheetService(client, db, clock=lambda: NOW)
        result = await service.create_rating_sheet(submission_id, controller.load_insured_record(submission_id))

    assert seen[0]["action"] == "create_rating_sheet"
    assert result["sheet_url"] == "https://docs.example/sheet/abc"
    assert result["sheet_id"] == "abc"
    assert result["premiums"] == {"total_gl_premium": 3100.5}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "Apps Script quota"}),
        httpx.Response(200, json={"premiums": {}}),
    ],
)
async def test_rating_sheet_service_failures_become_rating_sheet_errors(db, submission_id, controller, response):
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response)) as http_client:
        client = RealRatingSheetClient(SpreadsheetConfig(webhook_url="https://sheets.example/hook"), http_client=http_client)
        service = RatingSheetService(client, db, clock=lambda: NOW)
        with pytest.raises(RatingSheetError):
            await service.create_rating_sheet(submission_id, controller.load_insured_record(submission_id))

    assert "novatae" not in controller.get_submission(submission_id)["rpa_tasks"]


@pytest.mark.asyncio
async def test_unconfigured_rating_sheet_url(db, submission_id, controller):
    service = RatingSheetService(RealRatingSheetClient(SpreadsheetConfig()), db, clock=lambda: NOW)

    with pytest.raises(RatingSheetError, match="not configured"):
        await service.create_rating_sheet(submission_id, controller.load_insured_record(submission_id))
