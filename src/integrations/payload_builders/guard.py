"""Guard bot payload.

The Guard bot hardcodes most of its form on the server side, so this contract is
deliberately minimal: only user-provided fields are sent. The fields listed in
BOT_OWNED_FIELDS are filled in by the bot and must not be added here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from src.integrations.contracts.carriers import CarrierType
from src.integrations.contracts.insured import InsuredRecord
from src.submissions.classifiers import map_columbia_applicant_is, map_legal_entity
from src.submissions.parsers import parse_phone, to_number

from .common import envelope, number_str, resolved_address, wire_str

BOT_OWNED_FIELDS = (
    "website",
    "producer_id",
    "csr_id",
    "policy_inception",
    "headquarters_state",
    "industry_id",
    "sub_industry_id",
    "business_type_id",
    "lines_of_business",
)


def build_guard_payload(record: InsuredRecord, submission_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    address = resolved_address(record.address)
    phone = parse_phone(record.contact_number)
    gl = record.general_liability

    # Gallons are a volume, so combined sales is the dollar figure only.
    gas_gallons = to_number(gl.gasoline_sales_yearly)
    combined_sales = to_number(gl.inside_sales_yearly)

    payload = envelope(CarrierType.GUARD.value, submission_id, now)
    payload["create_account"] = True
    payload["account_data"] = {
        "legal_entity": map_legal_entity(record.ownership_type, record.corporation_name),
        "applicant_name": record.corporation_name,
        "dba": record.dba,
        "address1": address.address_line1,
        "address2": address.address_line2,
        "zipcode": address.zip_code,
        "city": address.city,
        "state": address.state,
        "contact_name": record.contact_name,
        "contact_phone": {
            "area": phone.area,
            "prefix": phone.prefix,
            "suffix": phone.suffix,
        },
        "email": record.contact_email,
        "years_in_business": wire_str(record.years_in_business) or "0",
        "description": record.operation_description,
        "ownership_type": map_columbia_applicant_is(None, record.ownership_type),
    }
    payload["quote_data"] = {
        "combined_sales": number_str(combined_sales),
        "gas_gallons": number_str(gas_gallons),
        "year_built": wire_str(record.year_built),
        "square_footage": wire_str(record.total_sq_footage),
        "mpds": wire_str(record.no_of_mpos) or "0",
    }
    return payload
