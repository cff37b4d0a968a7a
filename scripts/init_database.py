#!/usr/bin/env python3
"""
Create the dispatch tables in Postgres: insured_information and submissions
(including the rpa_tasks map and its rpa_tasks_version column).

Uses DATABASE_URL environment variable. Does NOT drop existing tables, so an
older submissions table without rpa_tasks_version is reported, not migrated.
"""

from __future__ import annotations
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

from src.database.models import Base
from src.database.postgres_real import _normalize_connection_string

REQUIRED_COLUMNS = {
    "insured_information": {"id", "corporation_name", "data"},
    "submissions": {"id", "business_name", "insured_info_id", "insured_info_snapshot", "rpa_tasks", "rpa_tasks_version"},
}


def missing_columns(engine) -> dict:
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    missing = {}
    for table, columns in REQUIRED_COLUMNS.items():
        present = {c["name"] for c in inspector.get_columns(table)} if table in tables else set()
        if columns - present:
            missing[table] = sorted(columns - present)
    return missing


def main() -> int:
    url = os.environ.get("DATABASE_URL")
    if not url:
        print("DATABASE_URL is not set", file=sys.stderr)
        return 1

    try:
        engine = create_engine(_normalize_connection_string(url), pool_pre_ping=True)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")

        Base.metadata.create_all(bind=engine)
        missing = missing_columns(engine)
    except OperationalError as e:
        print(f"❌ Failed to connect to database: {e}", file=sys.stderr)
        return 2

    if missing:
        for table, columns in missing.items():
            print(f"❌ {table} is missing columns: {', '.join(columns)}", file=sys.stderr)
        return 3

    print("✅ Dispatch tables ready:", sorted(REQUIRED_COLUMNS))
    return 0


if __name__ == "__main__":
    sys.exit(main())
