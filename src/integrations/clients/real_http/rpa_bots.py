"""
Real RPA bot HTTP client.

Posts a carrier payload to that carrier's automation webhook. Every failure is
classified and returned inside a CarrierSubmissionResult; nothing is raised to
the dispatcher, so one carrier can never abort its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from src.integrations.contracts.carriers import CarrierSubmissionResult, CarrierType
from src.integrations.policy.response_wrappers import IntegrationResponseError, normalize_bot_response
from src.utils.config_loader import DispatchConfig

logger = logging.getLogger(__name__)

ERROR_TIMEOUT = "timeout"
ERROR_UNREACHABLE = "unreachable"
ERROR_HTTP = "http_error"
ERROR_MALFORMED = "malformed_response"
ERROR_NETWORK = "network_error"
ERROR_NOT_CONFIGURED = "not_configured"


class RealRpaBotClient:
    def __init__(self, config: DispatchConfig, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config
        self.timeout_seconds = config.timeout_seconds
        self._http_client = http_client

    async def submit(self, carrier: CarrierType, payload: Dict[str, Any]) -> CarrierSubmissionResult:
        endpoint = self.config.endpoint(carrier)
        if not endpoint.enabled:
            return _failure(carrier, f"{carrier.value} automation is disabled", ERROR_NOT_CONFIGURED)
        if not endpoint.webhook_url:
            return _failure(carrier, f"{carrier.value} webhook URL is not configured", ERROR_NOT_CONFIGURED)

        url = endpoint.webhook_url
        logger.info("Sending %s payload to %s", carrier.value, url)
        try:
            response = await asyncio.wait_for(self._post(url, payload), timeout=self.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return _failure(carrier, f"Request timed out after {self.timeout_seconds:g} seconds", ERROR_TIMEOUT)
        except httpx.ConnectError as exc:
            return _failure(carrier, f"Cannot reach {carrier.value} automation server: {exc}", ERROR_UNREACHABLE)
        except httpx.RequestError as exc:
            return _failure(carrier, f"Network error: {exc}", ERROR_NETWORK)

        if not response.is_success:
            return _failure(carrier, _http_error_message(response), ERROR_HTTP, data=_json_or_empty(response))

        try:
            body = response.json() if response.content else {}
            normalized = normalize_bot_response(body)
        except ValueError as exc:
            # IntegrationResponseError is a ValueError, as is a JSON decode failure.
            payload_hint = exc.payload if isinstance(exc, IntegrationResponseError) else response.text[:200]
            logger.error("Malformed %s response: %s (%s)", carrier.value, exc, payload_hint)
            return _failure(carrier, f"Malformed response from {carrier.value} automation server", ERROR_MALFORMED)

        data = {**normalized.raw, **normalized.model_dump(exclude={"raw"}, exclude_none=True)}
        return CarrierSubmissionResult(
            carrier=carrier,
            success=True,
            task_id=normalized.task_id,
            data=data,
        )

    async def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._http_client is not None:
            return await self._http_client.post(url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(url, json=payload, headers=headers)


def _failure(
    carrier: CarrierType,
    message: str,
    error_type: str,
    data: Optional[Dict[str, Any]] = None,
) -> CarrierSubmissionResult:
    return CarrierSubmissionResult(
        carrier=carrier,
        success=False,
        data=data or {},
        error=message,
        error_type=error_type,
    )


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _http_error_message(response: httpx.Response) -> str:
    body = _json_or_empty(response)
    for key in ("message", "error", "detail"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return f"HTTP {response.status_code}"
