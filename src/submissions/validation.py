"""Pre-dispatch validation for auto-submission.

Runs before any carrier is contacted and stops at the first violation. The gate
is all-or-nothing for the batch: if any selected carrier's rule fails, no
carrier is called. Rules owned by a carrier only run when that carrier is in
the requested set.

On failure, raise `SubmissionValidationError` so the API can return HTTP 400
with `{error, field?, details?}`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, Optional

from src.integrations.contracts.carriers import CarrierType
from src.integrations.contracts.insured import InsuredRecord
from src.submissions.parsers import ParsedAddress, parse_address

MIN_YEAR_BUILT = 1800
COLUMBIA_MIN_SQ_FOOTAGE = 3000
# Encova does not write these states. Add new exclusions here.
ENCOVA_EXCLUDED_STATES = frozenset({"TX"})

_FEIN_RE = re.compile(r"^\d{2}-\d{7}$")
_FOOTAGE_RE = re.compile(r"^-?\d+(\.\d+)?$")


@dataclass
class SubmissionValidationError(Exception):
    """Exception raised when a submission cannot be dispatched.

    Attributes:
        message: human-readable error shown to the agent.
        field: the input field at fault, when the violation is tied to one.
        details: optional extra context (e.g. the offending value).
    """

    message: str
    field: Optional[str] = None
    details: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.field:
            body["field"] = self.field
        if self.details:
            body["details"] = self.details
        return body


def is_valid_fein(fein: Optional[str]) -> bool:
    """Empty FEINs are allowed; anything else must be XX-XXXXXXX."""
    if not fein or not str(fein).strip():
        return True
    cleaned = re.sub(r"\s+", "", str(fein))
    return bool(_FEIN_RE.match(cleaned))


def parse_year(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    raw = str(value).strip()
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        as_float = float(raw)
    except ValueError:
        return None
    return int(as_float) if as_float.is_integer() else None


def parse_footage(value: Any) -> Optional[float]:
    """Read a square footage keeping its sign; None when it is not a plain number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[$,\s]", "", str(value))
    if not _FOOTAGE_RE.match(cleaned):
        return None
    return float(cleaned)


def validate_submission(
    record: InsuredRecord,
    carriers: Iterable[CarrierType],
    today: Optional[date] = None,
) -> ParsedAddress:
    """Raise SubmissionValidationError on the first violation; return the parsed address."""
    selected = set(carriers)
    max_year = (today or date.today()).year + 1

    if not record.corporation_name:
        raise SubmissionValidationError("Corporation name is required.", field="corporationName")

    if not record.address:
        raise SubmissionValidationError("Address is required.", field="address")

    address = parse_address(record.address)
    if not address.zip_code:
        raise SubmissionValidationError(
            "Zip code is required in address",
            field="address",
            details="Please update the address to include a zip code.",
        )

    if record.year_built is None or str(record.year_built).strip() == "":
        raise SubmissionValidationError("Year built is required for RPA submission.", field="yearBuilt")

    year_built = parse_year(record.year_built)
    if year_built is None or year_built < MIN_YEAR_BUILT or year_built > max_year:
        raise SubmissionValidationError(
            f"Year built must be a valid year between {MIN_YEAR_BUILT} and {max_year}",
            field="yearBuilt",
        )

    if not is_valid_fein(record.fein):
        raise SubmissionValidationError("FEIN must be in format XX-XXXXXXX", field="fein")

    for carrier in CarrierType:
        if carrier not in selected:
            continue
        if carrier is CarrierType.ENCOVA:
            _validate_encova(address)
        elif carrier is CarrierType.GUARD:
            _validate_guard(record, address)
        elif carrier is CarrierType.COLUMBIA:
            _validate_columbia(record)

    return address


def _validate_encova(address: ParsedAddress) -> None:
    if address.state in ENCOVA_EXCLUDED_STATES:
        raise SubmissionValidationError(
            f"Encova does not accept submissions for risks located in {address.state}.",
            field="address",
            details="Remove Encova from the selected carriers for this submission.",
        )


def _validate_guard(record: InsuredRecord, address: ParsedAddress) -> None:
    if not record.contact_name:
        raise SubmissionValidationError("Contact name is required for Guard submission.", field="contactName")
    if not record.contact_number:
        raise SubmissionValidationError("Contact phone is required for Guard submission.", field="contactNumber")
    if not record.years_in_business:
        raise SubmissionValidationError("Years in business is required for Guard submission.", field="yearsExpInBusiness")
    if not record.operation_description:
        raise SubmissionValidationError(
            "Description of operations is required for Guard submission.", field="operationDescription"
        )
    if not address.city:
        raise SubmissionValidationError("City is required in address for Guard submission.", field="address")


def _validate_columbia(record: InsuredRecord) -> None:
    if not record.contact_name:
        raise SubmissionValidationError("Contact name is required for Columbia submission.", field="contactName")
    if not record.contact_email:
        raise SubmissionValidationError("Contact email is required for Columbia submission.", field="contactEmail")
    if not record.corporation_name:
        raise SubmissionValidationError("Corporation name is required for Columbia submission.", field="corporationName")
    if not record.address:
        raise SubmissionValidationError("Address is required for Columbia submission.", field="address")
    footage = parse_footage(record.total_sq_footage)
    if footage is None or footage < COLUMBIA_MIN_SQ_FOOTAGE:
        raise SubmissionValidationError(
            f"Columbia requires a total square footage of at least {COLUMBIA_MIN_SQ_FOOTAGE}.",
            field="totalSqFootage",
            details=f"Current value: {record.total_sq_footage if record.total_sq_footage is not None else 'not provided'}",
        )
