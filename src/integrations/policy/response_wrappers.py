from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError


class IntegrationResponseError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class BotResponseModel(BaseModel):
    task_id: Optional[str] = None
    status: Optional[str] = None
    message: Optional[str] = None
    account_created: bool = False
    account_number: Optional[str] = None
    quote_url: Optional[str] = None
    policy_code: Optional[str] = None
    quotation_url: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class SheetPremiumsModel(BaseModel):
    total_gl_premium: Optional[float] = None
    total_property_premium: Optional[float] = None
    optional_total_premium: Optional[float] = None
    total_premium: Optional[float] = None


class RatingSheetResponseModel(BaseModel):
    sheet_url: str
    sheet_id: Optional[str] = None
    premiums: SheetPremiumsModel = Field(default_factory=SheetPremiumsModel)
    raw: Dict[str, Any] = Field(default_factory=dict)


_BOT_STATUSES = {"queued", "accepted", "running", "completed", "failed"}

_PREMIUM_KEYS = {
    "total_gl_premium": ("total_gl_premium", "totalGLPremium"),
    "total_property_premium": ("total_property_premium", "totalPropertyPremium"),
    "optional_total_premium": ("optional_total_premium", "optionalTotalPremium"),
    "total_premium": ("total_premium", "totalPremium"),
}


def normalize_bot_response(raw: Any) -> BotResponseModel:
    """Normalize a bot's immediate reply. Every field is optional on the wire."""
    if not isinstance(raw, dict):
        raise IntegrationResponseError(
            f"Bot response must be a JSON object; got {type(raw).__name__}.",
            payload={"body": raw},
        )

    task_id = _first_non_empty(raw, "task_id", "taskId", default="")
    status = str(_first_non_empty(raw, "status", default="")).strip().lower()
    if status and status not in _BOT_STATUSES:
        # Bots answer with free text such as "ok"; only lifecycle states are tracked.
        status = ""
    account_number = _first_non_empty(raw, "account_number", "accountNumber", default="")

    return _build_model(
        BotResponseModel,
        {
            "task_id": str(task_id) if task_id else None,
            "status": status or None,
            "message": _first_non_empty(raw, "message", "detail", default="") or None,
            "account_created": bool(raw.get("account_created") or raw.get("accountCreated")),
            "account_number": str(account_number) if account_number else None,
            "quote_url": _first_non_empty(raw, "quote_url", "quoteUrl", default="") or None,
            "policy_code": _first_non_empty(raw, "policy_code", "policyCode", default="") or None,
            "quotation_url": _first_non_empty(raw, "quotation_url", "quotationUrl", default="") or None,
            "raw": raw,
        },
        raw,
    )


def normalize_rating_sheet_response(raw: Any) -> RatingSheetResponseModel:
    if not isinstance(raw, dict):
        raise IntegrationResponseError("Rating sheet response must be a JSON object.", payload={"body": raw})

    sheet_url = _first_non_empty(raw, "sheet_url", "sheetUrl", "url")
    sheet_id = _first_non_empty(raw, "sheet_id", "sheetId", "spreadsheet_id", default="")
    raw_premiums = raw.get("premiums") if isinstance(raw.get("premiums"), dict) else {}

    premiums: Dict[str, float] = {}
    for name, keys in _PREMIUM_KEYS.items():
        amount = _positive_amount_or_none(_first_non_empty(raw_premiums, *keys, default=""))
        if amount is not None:
            premiums[name] = amount

    return _build_model(
        RatingSheetResponseModel,
        {
            "sheet_url": str(sheet_url),
            "sheet_id": str(sheet_id) if sheet_id else None,
            "premiums": premiums,
            "raw": raw,
        },
        raw,
    )


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is not None:
        return default
    raise IntegrationResponseError(f"Missing required field. Checked keys: {', '.join(keys)}", payload=data)


def _positive_amount_or_none(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    if isinstance(value, str):
        value = "".join(ch for ch in value if ch.isdigit() or ch in ".-")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return amount if amount > 0 else None


def _build_model(model_type, payload: Dict[str, Any], raw: Dict[str, Any]):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise IntegrationResponseError(f"Response validation failed: {exc}", payload=raw) from exc
