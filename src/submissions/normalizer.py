"""
Insured-information normalizer.

Insured data reaches the dispatch engine in two historical shapes: the newer
camelCase form objects and the flat, database-column (snake_case) rows. Either
may arrive as the live foreign-key record or as the snapshot frozen onto the
submission when it was created.

normalize_insured_info() resolves every field by preference-fallback
(camelCase key, then snake_case column, then an empty default) into one
InsuredRecord. Nothing downstream ever branches on the source shape.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from src.integrations.contracts.insured import GeneralLiability, InsuredRecord, PropertyCoverage

logger = logging.getLogger(__name__)

# record attribute -> source keys, in preference order
_STRING_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("dba", ("dba",)),
    ("address", ("address",)),
    ("contact_name", ("contactName", "contact_name")),
    ("contact_number", ("contactNumber", "contact_number")),
    ("contact_email", ("contactEmail", "contact_email")),
    ("operation_description", ("operationDescription", "operation_description")),
    ("ownership_type", ("ownershipType", "ownership_type")),
    ("applicant_is", ("applicantIs", "applicant_is")),
    ("fein", ("fein", "fein_id", "federal_employer_id")),
    ("construction_type", ("constructionType", "construction_type")),
    ("proposed_effective_date", ("proposedEffectiveDate", "proposed_effective_date")),
)

_VALUE_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("year_built", ("yearBuilt", "year_built")),
    ("total_sq_footage", ("totalSqFootage", "total_sq_footage")),
    ("no_of_stories", ("noOfStories", "no_of_stories")),
    ("years_exp_in_business", ("yearsExpInBusiness", "years_exp_in_business")),
    ("years_at_location", ("yearsAtLocation", "years_at_location")),
    ("no_of_mpos", ("noOfMPOs", "no_of_mpos")),
)

_GENERAL_LIABILITY_FIELDS = (
    ("inside_sales_yearly", ("insideSalesYearly", "inside_sales_yearly")),
    ("liquor_sales_yearly", ("liquorSalesYearly", "liquor_sales_yearly")),
    ("gasoline_sales_yearly", ("gasolineSalesYearly", "gasoline_sales_yearly")),
)

_PROPERTY_COVERAGE_FIELDS = (
    ("building", ("building", "Building")),
    ("bpp", ("bpp", "BPP", "contents")),
    ("bi", ("bi", "BI", "businessIncome", "business_income")),
    ("canopy", ("canopy", "canopies")),
    ("pumps", ("pumps",)),
    ("signs", ("signs",)),
)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _first_present(data: Mapping[str, Any], keys: Tuple[str, ...], default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if not _is_missing(value):
            return value
    return default


def _as_mapping(value: Any) -> Mapping[str, Any]:
    """Sub-objects may be stored as JSON text in older rows."""
    if isinstance(value, Mapping):
        return value
    if isinstance(value, str) and value.strip():
        try:
            parsed = json.loads(value)
        except ValueError:
            logger.warning("Ignoring unparseable insured sub-object: %r", value[:80])
            return {}
        return parsed if isinstance(parsed, Mapping) else {}
    return {}


def _clean_value(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def normalize_insured_info(raw: Optional[Mapping[str, Any]], fallback_business_name: Optional[str] = None) -> InsuredRecord:
    """Build the canonical InsuredRecord from either historical shape. Never raises."""
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    corporation_name = _first_present(data, ("corporationName", "corporation_name"), default=fallback_business_name)

    fields: Dict[str, Any] = {}
    for attr, keys in _STRING_FIELDS:
        fields[attr] = str(_first_present(data, keys, default="")).strip()
    for attr, keys in _VALUE_FIELDS:
        fields[attr] = _clean_value(_first_present(data, keys))

    gl_raw = _as_mapping(_first_present(data, ("generalLiability", "general_liability"), default={}))
    pc_raw = _as_mapping(_first_present(data, ("propertyCoverage", "property_coverage"), default={}))

    general_liability = GeneralLiability(
        **{attr: _clean_value(_first_present(gl_raw, keys)) for attr, keys in _GENERAL_LIABILITY_FIELDS}
    )
    property_coverage = PropertyCoverage(
        **{attr: _clean_value(_first_present(pc_raw, keys)) for attr, keys in _PROPERTY_COVERAGE_FIELDS}
    )

    return InsuredRecord(
        corporation_name=str(corporation_name or "").strip(),
        general_liability=general_liability,
        property_coverage=property_coverage,
        **fields,
    )
