"""Free-text parsers for the fields carrier bots need in structured form.

Mailing addresses, contact names and phone numbers are captured as single
free-text inputs. Carrier websites want them split up, so every parser here is
total: it never raises and returns empty strings for anything it cannot find.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional

# Order matters: the first abbreviation found as a whole word wins.
US_STATE_ABBREVIATIONS = (
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
    "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
    "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
    "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
    "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
)

_ZIP_RE = re.compile(r"\b(\d{5}(?:-\d{4})?)\b")
_CITY_RE = re.compile(r",\s*([^,]+?)\s*,?\s*[A-Z]{2}\s*\d{5}", re.IGNORECASE)
_TRAILING_STATE_ZIP_RE = re.compile(r"\s*[A-Z]{2}\s*\d{5}.*$", re.IGNORECASE)
_STATE_RES = {st: re.compile(rf"\b{st}\b") for st in US_STATE_ABBREVIATIONS}


@dataclass(frozen=True)
class ParsedAddress:
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


@dataclass(frozen=True)
class ParsedName:
    first_name: str = ""
    last_name: str = ""


@dataclass(frozen=True)
class ParsedPhone:
    area: str = ""
    prefix: str = ""
    suffix: str = ""


def _as_str(v: Any) -> str:
    return "" if v is None else str(v)


def find_state(text: str) -> str:
    """Return the first US state abbreviation present as a whole word, or ''."""
    upper = text.upper()
    for st, pattern in _STATE_RES.items():
        if pattern.search(upper):
            return st
    return ""


def parse_address(text: Optional[str]) -> ParsedAddress:
    """Split a one-line US mailing address into line 1, city, state and zip.

    The state is not defaulted here; call sites that need a non-empty state
    apply their own fallback.
    """
    address = _as_str(text).strip()
    if not address:
        return ParsedAddress()

    zip_match = _ZIP_RE.search(address)
    zip_code = zip_match.group(1) if zip_match else ""

    state = find_state(address)

    city = ""
    city_match = _CITY_RE.search(address)
    if city_match:
        city = city_match.group(1).strip()
    else:
        parts = [p.strip() for p in address.split(",")]
        if len(parts) >= 2:
            candidate = parts[-2] or parts[-1]
            city = _TRAILING_STATE_ZIP_RE.sub("", candidate).strip()

    line1 = _ZIP_RE.sub("", address, count=1)
    if state:
        line1 = re.sub(rf"\b{state}\b", "", line1, count=1, flags=re.IGNORECASE)
    if city:
        line1 = re.sub(rf"\b{re.escape(city)}\b", "", line1, count=1, flags=re.IGNORECASE)
    line1 = re.sub(r",\s*,", ",", line1)
    line1 = re.sub(r",\s*$", "", line1)
    line1 = re.sub(r"^\s*,", "", line1)
    line1 = re.sub(r",\s*$", "", line1.strip()).strip()

    return ParsedAddress(
        address_line1=line1 or address,
        city=city,
        state=state,
        zip_code=zip_code,
    )


def parse_name(full_name: Optional[str]) -> ParsedName:
    parts = _as_str(full_name).split()
    if not parts:
        return ParsedName()
    if len(parts) == 1:
        return ParsedName(first_name=parts[0])
    return ParsedName(first_name=parts[0], last_name=" ".join(parts[1:]))


def parse_phone(phone: Optional[str]) -> ParsedPhone:
    digits = re.sub(r"\D", "", _as_str(phone))
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) != 10:
        return ParsedPhone()
    return ParsedPhone(area=digits[:3], prefix=digits[3:6], suffix=digits[6:])


def format_fein(fein: Optional[str]) -> str:
    """Render nine FEIN digits as XX-XXXXXXX; anything else is returned untouched."""
    raw = _as_str(fein)
    digits = re.sub(r"\D", "", raw)
    if len(digits) != 9:
        return raw
    return f"{digits[:2]}-{digits[2:]}"


def parse_date(value: Any) -> Optional[date]:
    """Best-effort parse of ISO (with or without time) and MM/DD/YYYY dates."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = _as_str(value).strip()
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in ("%m/%d/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def format_us_date(value: Any) -> str:
    """MM/DD/YYYY for parseable input; unparseable text is passed through."""
    parsed = parse_date(value)
    if parsed is None:
        return _as_str(value)
    return parsed.strftime("%m/%d/%Y")


def days_from(today: date, days: int) -> str:
    return (today + timedelta(days=days)).strftime("%m/%d/%Y")


def to_number(value: Any) -> float:
    """Reduce '$1,250,000' style input to a float; 0.0 when nothing numeric remains."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^0-9.]", "", _as_str(value))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0
