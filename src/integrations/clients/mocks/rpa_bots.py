"""Mock RPA bot and rating-sheet clients.

Offline stand-ins for the carrier automation webhooks and the rating sheet
service. They accept the same payloads as the real clients and answer with the
shapes the real services return. When ``output_root`` is given, every exchange
is written there as JSON, grouped by carrier, for inspection.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from src.integrations.contracts.carriers import SPREADSHEET_TASK_KEY, CarrierSubmissionResult, CarrierType
from src.integrations.policy.response_wrappers import RatingSheetResponseModel, normalize_rating_sheet_response

logger = logging.getLogger(__name__)

# Rough flat rates so the mock sheet returns plausible premiums.
_GL_RATE = 0.0035
_PROPERTY_RATE = 0.004


class MockRpaBotClient:
    """Mock bot client that queues every submission."""

    def __init__(self, output_root: Optional[Path] = None) -> None:
        self.output_root = output_root
        self.calls: List[Dict[str, Any]] = []

    async def submit(self, carrier: CarrierType, payload: Dict[str, Any]) -> CarrierSubmissionResult:
        self.calls.append({"carrier": carrier.value, "payload": payload})
        task_id = str(payload.get("task_id") or f"{carrier.value}_mock_{uuid4().hex[:8]}")

        response: Dict[str, Any] = {
            "task_id": task_id,
            "status": "queued",
            "message": f"{carrier.value.title()} automation queued (mock)",
        }
        if carrier is CarrierType.GUARD and payload.get("create_account"):
            response.update({
                "account_created": True,
                "account_number": f"GRD-MOCK-{uuid4().hex[:6].upper()}",
            })

        _write_mock_output(self.output_root, carrier.value, payload, response)
        return CarrierSubmissionResult(carrier=carrier, success=True, task_id=task_id, data=response)


class MockRatingSheetClient:
    """Mock rating sheet that echoes a sheet URL and flat-rate premiums."""

    def __init__(self, output_root: Optional[Path] = None) -> None:
        self.output_root = output_root

    async def create_rating_sheet(self, request: Dict[str, Any]) -> RatingSheetResponseModel:
        values = {cell["range"].split("!")[-1]: cell["value"] for cell in request.get("cells", [])}
        gl_premium = round(_number(values.get("F19")) * _GL_RATE, 2)
        property_premium = round(
            sum(_number(values.get(key)) for key in ("C30", "C31", "C33")) * _PROPERTY_RATE, 2
        )
        sheet_id = uuid4().hex[:12]

        response: Dict[str, Any] = {
            "sheet_url": f"https://sheets.mock.local/{sheet_id}",
            "sheet_id": sheet_id,
            "premiums": {
                "total_gl_premium": gl_premium,
                "total_property_premium": property_premium,
                "total_premium": round(gl_premium + property_premium, 2),
            },
        }

        _write_mock_output(self.output_root, SPREADSHEET_TASK_KEY, request, response)
        return normalize_rating_sheet_response(response)


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _write_mock_output(
    output_root: Optional[Path],
    carrier_key: str,
    payload: Dict[str, Any],
    response: Dict[str, Any],
) -> Optional[Path]:
    if output_root is None:
        return None

    carrier_dir = output_root / carrier_key
    carrier_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    safe_task_id = str(response.get("task_id") or response.get("sheet_id") or "unknown").replace("/", "_")
    file_path = carrier_dir / f"{timestamp}_{safe_task_id}.json"

    output_document = {
        "created_at": datetime.now(timezone.utc).isoformat(),
        "carrier": carrier_key,
        "input": payload,
        "output": response,
    }

    try:
        file_path.write_text(json.dumps(output_document, indent=2, default=str), encoding="utf-8")
    except OSError:
        logger.exception("Failed to write mock output file: %s", file_path)

    return file_path
