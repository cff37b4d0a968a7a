"""Registry of per-carrier payload builders.

Each builder is a pure function ``(InsuredRecord, submission_id, now=None) -> dict``
producing one bot's exact wire payload. Builders never validate; they are safe
to call on any normalized record. Adding a carrier means adding a module here
and one registry entry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Optional

from src.integrations.contracts.carriers import CarrierType
from src.integrations.contracts.insured import InsuredRecord

from .columbia import build_columbia_payload
from .encova import build_encova_payload
from .guard import build_guard_payload

PayloadBuilder = Callable[[InsuredRecord, str, Optional[datetime]], Dict[str, Any]]

_REGISTRY: Dict[CarrierType, PayloadBuilder] = {
    CarrierType.ENCOVA: build_encova_payload,
    CarrierType.GUARD: build_guard_payload,
    CarrierType.COLUMBIA: build_columbia_payload,
}


def get_payload_builder(carrier: CarrierType) -> PayloadBuilder:
    try:
        return _REGISTRY[carrier]
    except KeyError:
        raise ValueError(f"No payload builder registered for carrier '{carrier}'") from None


def build_payload(carrier: CarrierType, record: InsuredRecord, submission_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    return get_payload_builder(carrier)(record, submission_id, now)
