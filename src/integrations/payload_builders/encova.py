"""Encova bot payload: individual-contact oriented property/casualty account plus quote."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from src.integrations.contracts.carriers import CarrierType
from src.integrations.contracts.insured import InsuredRecord
from src.submissions.parsers import format_fein, parse_name

from .common import envelope, resolved_address, wire_str

PRODUCER_NAME = "Shahnaz Sutar"
NOT_AVAILABLE = "N/A"


def build_encova_payload(record: InsuredRecord, submission_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    name = parse_name(record.contact_name)
    address = resolved_address(record.address)
    gl = record.general_liability
    pc = record.property_coverage

    payload = envelope(CarrierType.ENCOVA.value, submission_id, now)
    payload["data"] = {
        "form_data": {
            "firstName": name.first_name or NOT_AVAILABLE,
            "lastName": name.last_name or NOT_AVAILABLE,
            "companyName": record.corporation_name,
            "fein": format_fein(record.fein) if record.fein else "",
            "description": record.operation_description or "Business operations",
            "addressLine1": address.address_line1,
            "zipCode": address.zip_code,
            "phone": record.contact_number,
            "email": record.contact_email,
        },
        "dropdowns": {
            "state": address.state,
            "addressType": "Business",
            "contactMethod": "Email",
            "producer": PRODUCER_NAME,
        },
        "save_form": True,
        "run_quote_automation": True,
        "quote_data": {
            "dba": record.dba,
            "org_type": record.ownership_type,
            "years_at_location": wire_str(record.years_at_location),
            "no_of_gallons_annual": wire_str(gl.gasoline_sales_yearly),
            "inside_sales": wire_str(gl.inside_sales_yearly),
            "construction_type": record.construction_type,
            "no_of_stories": wire_str(record.no_of_stories),
            "square_footage": wire_str(record.total_sq_footage),
            "year_built": wire_str(record.year_built),
            "limit_business_income": wire_str(pc.bi),
            "limit_personal_property": wire_str(pc.bpp),
            "building_description": record.operation_description,
        },
    }
    return payload
