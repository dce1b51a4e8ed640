"""SQLAlchemy models for sales processes and knowledge bases."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text

from .base import Base, JsonColumnType
from .recording import utc_now


class SalesProcessRow(Base):
    __tablename__ = "sales_processes"

    id = Column(String(128), primary_key=True)
    name = Column(Text, nullable=False)
    steps = Column(JsonColumnType, nullable=False)
    created_by = Column(String(128), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )
    is_default = Column(Boolean, nullable=False, default=False, index=True)


class KnowledgeBaseRow(Base):
    __tablename__ = "knowledge_bases"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_info = Column(Text, nullable=True)
    products = Column(JsonColumnType, nullable=True)
    common_objections = Column(JsonColumnType, nullable=True)
    best_practices = Column(JsonColumnType, nullable=True)
    industry_context = Column(Text, nullable=True)
    created_by = Column(String(128), nullable=True)
    last_updated_by = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )
    is_active = Column(Boolean, nullable=False, default=True, index=True)


__all__ = ["KnowledgeBaseRow", "SalesProcessRow"]
