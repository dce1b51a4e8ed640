"""Declarative base shared by all ORM models."""

from __future__ import annotations

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere.
JsonColumnType = JSON().with_variant(JSONB(), "postgresql")

__all__ = ["Base", "JsonColumnType"]
