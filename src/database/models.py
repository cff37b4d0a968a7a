"""
SQLAlchemy models for insured information and submissions.
Used by postgres_real when USE_POSTGRES_SUBMISSIONS and DATABASE_URL are set.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4
from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class InsuredInformation(Base):
    __tablename__ = "insured_information"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    corporation_name: Mapped[str] = mapped_column(String(512), default="", nullable=False)
    # Raw record in whichever historical shape it arrived in (camelCase or column-cased).
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    business_name: Mapped[str] = mapped_column(String(512), nullable=False)
    business_type_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    agent_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(32), default="draft", nullable=False)
    insured_info_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("insured_information.id"), nullable=True, index=True
    )
    insured_info_snapshot: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    rpa_tasks: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    rpa_tasks_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
