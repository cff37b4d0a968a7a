"""Columbia bot payload: effective-dated account and quote; building limit only for owners."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from src.integrations.contracts.carriers import CarrierType
from src.integrations.contracts.insured import InsuredRecord
from src.submissions.classifiers import APPLICANT_OWNER, map_columbia_applicant_is, map_columbia_business_type
from src.submissions.parsers import format_fein, format_us_date, parse_name, parse_phone

from .common import envelope, resolved_address, utc_now, wire_str


def effective_date(record: InsuredRecord, now: Optional[datetime] = None) -> str:
    """Proposed effective date when given, otherwise tomorrow, as MM/DD/YYYY."""
    if record.proposed_effective_date:
        return format_us_date(record.proposed_effective_date)
    return (utc_now(now) + timedelta(days=1)).strftime("%m/%d/%Y")


def build_columbia_payload(record: InsuredRecord, submission_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    name = parse_name(record.contact_name)
    phone = parse_phone(record.contact_number)
    address = resolved_address(record.address)
    pc = record.property_coverage
    applicant_is = map_columbia_applicant_is(record.applicant_is, record.ownership_type)

    quote_data: Dict[str, Any] = {
        "effective_date": effective_date(record, now),
        "year_built": wire_str(record.year_built),
        "square_footage": wire_str(record.total_sq_footage),
        "construction_type": record.construction_type,
        "no_of_stories": wire_str(record.no_of_stories),
        "bpp_limit": wire_str(pc.bpp),
        "bi_limit": wire_str(pc.bi),
    }
    if applicant_is == APPLICANT_OWNER:
        quote_data["building_limit"] = wire_str(pc.building)

    payload = envelope(CarrierType.COLUMBIA.value, submission_id, now)
    payload["account_data"] = {
        "business_name": record.corporation_name,
        "dba": record.dba,
        "business_type": map_columbia_business_type(record.ownership_type, record.corporation_name),
        "applicant_is": applicant_is,
        "fein": format_fein(record.fein) if record.fein else "",
        "address1": address.address_line1,
        "city": address.city,
        "state": address.state,
        "zipcode": address.zip_code,
        "contact_first_name": name.first_name,
        "contact_last_name": name.last_name,
        "contact_email": record.contact_email,
        "contact_phone": f"{phone.area}-{phone.prefix}-{phone.suffix}" if phone.area else "",
        "description": record.operation_description,
        "years_in_business": wire_str(record.years_in_business),
    }
    payload["quote_data"] = quote_data
    return payload
