"""
Real rating-sheet HTTP client.

Used when NOVATAE_SHEET_WEBHOOK_URL (or spreadsheet.webhook_url) is configured.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from src.integrations.policy.response_wrappers import RatingSheetResponseModel, normalize_rating_sheet_response
from src.utils.config_loader import SpreadsheetConfig

logger = logging.getLogger(__name__)


class RealRatingSheetClient:
    def __init__(self, config: SpreadsheetConfig, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.webhook_url = config.webhook_url
        self.timeout_seconds = config.timeout_seconds
        self._http_client = http_client

    async def create_rating_sheet(self, request: Dict[str, Any]) -> RatingSheetResponseModel:
        if not self.webhook_url:
            raise ValueError("NOVATAE_SHEET_WEBHOOK_URL is not configured.")

        logger.info("Creating rating sheet '%s'", request.get("sheet_title"))
        if self._http_client is not None:
            response = await self._http_client.post(self.webhook_url, json=request, timeout=self.timeout_seconds)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(self.webhook_url, json=request)
        response.raise_for_status()
        data = response.json() if response.content else {}

        return normalize_rating_sheet_response(data)
