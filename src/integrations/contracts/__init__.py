"""
Contracts (data models).

This folder defines the request/response shapes for the carrier integrations:
- the canonical insured-business record every carrier payload is built from
- carrier identifiers, per-carrier dispatch results and RPA task status records

Mock and real bot clients both return these models, and the dispatch engine
and webhook read and write task maps only through them.
"""

from .carriers import (
    DEFAULT_CARRIERS,
    SPREADSHEET_TASK_KEY,
    CarrierSubmissionResult,
    CarrierType,
    DispatchOutcome,
    RpaTaskResult,
    RpaTaskState,
    RpaTaskStatus,
    dump_task_map,
    load_task_map,
)
from .insured import GeneralLiability, InsuredRecord, PropertyCoverage

__all__ = [
    "DEFAULT_CARRIERS",
    "SPREADSHEET_TASK_KEY",
    "CarrierSubmissionResult",
    "CarrierType",
    "DispatchOutcome",
    "GeneralLiability",
    "InsuredRecord",
    "PropertyCoverage",
    "RpaTaskResult",
    "RpaTaskState",
    "RpaTaskStatus",
    "dump_task_map",
    "load_task_map",
]
