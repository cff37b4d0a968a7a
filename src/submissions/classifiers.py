"""Map free-text ownership descriptors onto each carrier's vocabulary."""

from __future__ import annotations

from typing import Optional

LEGAL_ENTITY_LLC = "L"
LEGAL_ENTITY_CORPORATION = "C"
LEGAL_ENTITY_PARTNERSHIP = "P"
LEGAL_ENTITY_INDIVIDUAL = "I"
LEGAL_ENTITY_JOINT_VENTURE = "J"

COLUMBIA_LLC = "LIMITED LIABILITY COMPANY"
COLUMBIA_CORPORATION = "CORPORATION"
COLUMBIA_PARTNERSHIP = "PARTNERSHIP"
COLUMBIA_SOLE_PROPRIETORSHIP = "SOLE PROPRIETORSHIP"

APPLICANT_OWNER = "owner"
APPLICANT_TENANT = "tenant"


def _lower(v: Optional[str]) -> str:
    return (v or "").strip().lower()


def _upper(v: Optional[str]) -> str:
    return (v or "").upper()


def map_legal_entity(ownership_type: Optional[str], company_name: Optional[str] = None) -> str:
    """L=LLC, C=Corporation, P=Partnership, I=Individual, J=Joint Venture."""
    kind = _lower(ownership_type)
    if kind:
        if "llc" in kind or "limited liability" in kind:
            return LEGAL_ENTITY_LLC
        if "corp" in kind or "inc" in kind:
            return LEGAL_ENTITY_CORPORATION
        if "partner" in kind:
            return LEGAL_ENTITY_PARTNERSHIP
        if "individual" in kind or "sole" in kind or "proprietor" in kind:
            return LEGAL_ENTITY_INDIVIDUAL
        if "joint" in kind or "venture" in kind:
            return LEGAL_ENTITY_JOINT_VENTURE

    name = _upper(company_name)
    if name:
        if " LLC" in name or ",LLC" in name or " L.L.C" in name:
            return LEGAL_ENTITY_LLC
        if " INC" in name or " CORP" in name or " INCORPORATED" in name:
            return LEGAL_ENTITY_CORPORATION
        if " LP" in name or " LLP" in name or "PARTNERSHIP" in name:
            return LEGAL_ENTITY_PARTNERSHIP

    return LEGAL_ENTITY_LLC


def map_columbia_business_type(ownership_type: Optional[str], company_name: Optional[str] = None) -> str:
    kind = _lower(ownership_type)
    if kind:
        if "llc" in kind or "limited liability" in kind:
            return COLUMBIA_LLC
        if "corp" in kind or "inc" in kind:
            return COLUMBIA_CORPORATION
        if "partner" in kind:
            return COLUMBIA_PARTNERSHIP
        if "individual" in kind or "sole" in kind or "proprietor" in kind:
            return COLUMBIA_SOLE_PROPRIETORSHIP

    name = _upper(company_name)
    if name:
        if " LLC" in name or ",LLC" in name or " L.L.C" in name:
            return COLUMBIA_LLC
        if " INC" in name or " CORP" in name or " INCORPORATED" in name:
            return COLUMBIA_CORPORATION
        if " LP" in name or " LLP" in name or "PARTNERSHIP" in name:
            return COLUMBIA_PARTNERSHIP

    return COLUMBIA_LLC


def map_columbia_applicant_is(applicant_is: Optional[str], ownership_type: Optional[str] = None) -> str:
    """'owner' or 'tenant'; applicant_is wins over ownership_type, tenant by default."""
    for text in (_lower(applicant_is), _lower(ownership_type)):
        if "owner" in text:
            return APPLICANT_OWNER
        if "tenant" in text:
            return APPLICANT_TENANT
    return APPLICANT_TENANT
