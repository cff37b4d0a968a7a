"""
Insured-business contract.

InsuredRecord is the canonical, normalized description of the insured business.
It is the only shape used past the normalization boundary: every payload builder
and the submission validator read it, none of them look at the raw storage rows.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class GeneralLiability:
    inside_sales_yearly: Any = None      # dollars
    liquor_sales_yearly: Any = None      # dollars
    gasoline_sales_yearly: Any = None    # gallons, not dollars


@dataclass(frozen=True)
class PropertyCoverage:
    building: Any = None
    bpp: Any = None                      # business personal property
    bi: Any = None                       # business income
    canopy: Any = None
    pumps: Any = None
    signs: Any = None


@dataclass(frozen=True)
class InsuredRecord:
    corporation_name: str
    dba: str = ""
    address: str = ""
    contact_name: str = ""
    contact_number: str = ""
    contact_email: str = ""
    operation_description: str = ""
    ownership_type: str = ""
    applicant_is: str = ""
    fein: str = ""
    construction_type: str = ""
    year_built: Any = None
    total_sq_footage: Any = None
    no_of_stories: Any = None
    years_exp_in_business: Any = None
    years_at_location: Any = None
    no_of_mpos: Any = None
    proposed_effective_date: str = ""
    general_liability: GeneralLiability = field(default_factory=GeneralLiability)
    property_coverage: PropertyCoverage = field(default_factory=PropertyCoverage)

    @property
    def years_in_business(self) -> Optional[Any]:
        return self.years_exp_in_business or self.years_at_location or None

    def to_dict(self) -> Dict[str, Any]:
        """camelCase view of the record, accepted back by normalize_insured_info."""
        flat = asdict(self)
        return {_camel(key): _camel_keys(value) for key, value in flat.items()}


_CAMEL_OVERRIDES = {"no_of_mpos": "noOfMPOs"}


def _camel(key: str) -> str:
    if key in _CAMEL_OVERRIDES:
        return _CAMEL_OVERRIDES[key]
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camel_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(k): v for k, v in value.items()}
    return value
