"""Helpers shared by the carrier payload builders."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.submissions.parsers import ParsedAddress, parse_address

START_AUTOMATION = "start_automation"

# Carrier sites need a state; GA is the book's home state.
FALLBACK_STATE = "GA"


def utc_now(now: Optional[datetime] = None) -> datetime:
    return now or datetime.now(timezone.utc)


def epoch_millis(now: datetime) -> int:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return int(now.timestamp() * 1000)


def make_task_id(carrier: str, submission_id: str, now: Optional[datetime] = None) -> str:
    return f"{carrier}_{submission_id}_{epoch_millis(utc_now(now))}"


def envelope(carrier: str, submission_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {"action": START_AUTOMATION, "task_id": make_task_id(carrier, submission_id, now)}


def wire_str(value: Any) -> str:
    """String() coercion with empty-string fallback for missing/zero values."""
    if not value:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def number_str(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def resolved_address(address: str) -> ParsedAddress:
    parsed = parse_address(address)
    if parsed.state:
        return parsed
    return ParsedAddress(
        address_line1=parsed.address_line1,
        address_line2=parsed.address_line2,
        city=parsed.city,
        state=FALLBACK_STATE,
        zip_code=parsed.zip_code,
    )
