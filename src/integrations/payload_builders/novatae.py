"""Novatae rating-sheet cell mapping.

The premium spreadsheet has a "Rating" tab with labels in column A and inputs
in column C (property) and F (general liability). This module maps the
normalized record onto those input cells; formulas in the sheet do the rest.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.integrations.contracts.carriers import SPREADSHEET_TASK_KEY
from src.integrations.contracts.insured import InsuredRecord
from src.submissions.parsers import days_from, parse_address, to_number

from .common import make_task_id, utc_now

RATING_TAB = "Rating"
EFFECTIVE_DATE_OFFSET_DAYS = 2

TERRITORY_ATLANTA = "502"
TERRITORY_REST_OF_STATE = "503"


def _cell(cell: str, value: Any) -> Dict[str, Any]:
    return {"range": f"{RATING_TAB}!{cell}", "value": value}


def territory_code(state: str, city: str) -> str:
    if state == "GA" and "atlanta" in (city or "").lower():
        return TERRITORY_ATLANTA
    return TERRITORY_REST_OF_STATE


def sheet_title(record: InsuredRecord, now: Optional[datetime] = None) -> str:
    stamp = utc_now(now).astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{record.corporation_name or 'Submission'} - {stamp}"


def build_rating_sheet_cells(
    record: InsuredRecord,
    now: Optional[datetime] = None,
    effective_date_offset_days: int = EFFECTIVE_DATE_OFFSET_DAYS,
) -> List[Dict[str, Any]]:
    address = parse_address(record.address)
    pc = record.property_coverage
    gl = record.general_liability
    cells: List[Dict[str, Any]] = []

    if record.corporation_name:
        cells.append(_cell("C5", record.corporation_name))
    if record.dba:
        cells.append(_cell("C6", record.dba))
    if record.address:
        cells.append(_cell("C8", record.address))
    cells.append(_cell("C9", days_from(utc_now(now).date(), effective_date_offset_days)))
    if record.year_built:
        cells.append(_cell("C24", str(record.year_built)))
    if address.state:
        cells.append(_cell("C27", address.state))
    cells.append(_cell("C28", territory_code(address.state, address.city)))

    building = to_number(pc.building)
    if building > 0:
        cells.append(_cell("C30", building))

    # Written whenever the raw input is truthy: numeric 0 and "" are skipped, the string "0" is written as 0.
    for cell, value in (
        ("C31", pc.bpp),
        ("C33", pc.bi),
        ("C34", pc.pumps),
        ("C36", pc.canopy),
        ("C37", pc.signs),
        ("F5", gl.liquor_sales_yearly),
        ("F16", gl.gasoline_sales_yearly),
        ("F19", gl.inside_sales_yearly),
    ):
        if value:
            cells.append(_cell(cell, to_number(value)))

    return cells


def build_rating_sheet_request(
    record: InsuredRecord,
    submission_id: str,
    now: Optional[datetime] = None,
    effective_date_offset_days: int = EFFECTIVE_DATE_OFFSET_DAYS,
) -> Dict[str, Any]:
    stamp = utc_now(now)
    return {
        "action": "create_rating_sheet",
        "task_id": make_task_id(SPREADSHEET_TASK_KEY, submission_id, stamp),
        "sheet_title": sheet_title(record, stamp),
        "cells": build_rating_sheet_cells(record, stamp, effective_date_offset_days),
    }
