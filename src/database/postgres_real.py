"""
Real Postgres-backed DB for production when USE_POSTGRES_SUBMISSIONS and DATABASE_URL are set.
Implements the same interface as src.database.postgres (in-memory stub).
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import create_engine, select, text, update
from sqlalchemy.orm import Session, sessionmaker

from src.database.models import Base, InsuredInformation, Submission
from src.database.postgres import StaleRpaTasksError


def _normalize_connection_string(s: str) -> str:
    """Strip common mistakes: 'psql \'...\'', extra quotes, whitespace."""
    s = s.strip()
    if re.match(r"^psql\s+", s, re.IGNORECASE):
        s = re.sub(r"^psql\s+", "", s, flags=re.IGNORECASE).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s


class PostgresDB:
    """
    Postgres data access using SQLAlchemy. Use when DATABASE_URL is set and
    USE_POSTGRES_SUBMISSIONS=true.
    """

    def __init__(self, connection_string: str) -> None:
        connection_string = _normalize_connection_string(connection_string)
        engine_kwargs: Dict[str, Any] = {"pool_pre_ping": True}
        if not connection_string.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=10)
        self.engine = create_engine(connection_string, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        with self._session() as s:
            s.execute(text("SELECT 1"))
        return True

    @contextmanager
    def _session(self) -> Session:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # ------------------------------------------------------------------ #
    # Insured information
    # ------------------------------------------------------------------ #
    def create_insured_information(self, data: Dict[str, Any], corporation_name: str = "") -> InsuredInformation:
        with self._session() as s:
            record = InsuredInformation(id=str(uuid4()), corporation_name=corporation_name, data=data)
            s.add(record)
            s.flush()
            s.refresh(record)
            return record

    def get_insured_information(self, insured_info_id: str) -> Optional[InsuredInformation]:
        with self._session() as s:
            stmt = select(InsuredInformation).where(InsuredInformation.id == insured_info_id)
            return s.execute(stmt).scalar_one_or_none()

    # ------------------------------------------------------------------ #
    # Submissions
    # ------------------------------------------------------------------ #
    def create_submission(
        self,
        *,
        business_name: str,
        business_type_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        insured_info_id: Optional[str] = None,
        insured_info_snapshot: Optional[Dict[str, Any]] = None,
        status: str = "draft",
    ) -> Submission:
        with self._session() as s:
            submission = Submission(
                id=str(uuid4()),
                business_name=business_name,
                business_type_id=business_type_id,
                agent_id=agent_id,
                status=status,
                insured_info_id=insured_info_id,
                insured_info_snapshot=insured_info_snapshot,
                rpa_tasks={},
                rpa_tasks_version=0,
            )
            s.add(submission)
            s.flush()
            s.refresh(submission)
            return submission

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        with self._session() as s:
            stmt = select(Submission).where(Submission.id == submission_id)
            return s.execute(stmt).scalar_one_or_none()

    def list_submissions(self, limit: int = 100) -> List[Submission]:
        with self._session() as s:
            stmt = select(Submission).order_by(Submission.created_at.desc()).limit(limit)
            return list(s.execute(stmt).scalars().all())

    def update_rpa_tasks(
        self,
        submission_id: str,
        rpa_tasks: Dict[str, Any],
        expected_version: int,
    ) -> Submission:
        """Compare-and-set on rpa_tasks_version; raises StaleRpaTasksError on a lost race."""
        with self._session() as s:
            stmt = (
                update(Submission)
                .where(Submission.id == submission_id, Submission.rpa_tasks_version == expected_version)
                .values(
                    rpa_tasks=rpa_tasks,
                    rpa_tasks_version=Submission.rpa_tasks_version + 1,
                    updated_at=datetime.now(timezone.utc),
                )
            )
            result = s.execute(stmt)
            if result.rowcount == 0:
                current = s.execute(select(Submission).where(Submission.id == submission_id)).scalar_one_or_none()
                if current is None:
                    raise KeyError(submission_id)
                raise StaleRpaTasksError(submission_id, expected_version, current.rpa_tasks_version)

            return s.execute(
                select(Submission).where(Submission.id == submission_id).execution_options(populate_existing=True)
            ).scalar_one()
