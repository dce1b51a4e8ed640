"""Engine and session management for the remote authoritative store.

The engine is created lazily by ``get_engine`` on first use.
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from salescoach.config.settings import DatabaseConfig, settings

# Tables must be registered on Base.metadata before create_all runs.
from salescoach.models import Base

logger = logging.getLogger(__name__)

_SCHEMA_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def schema_name_for(config: DatabaseConfig) -> Optional[str]:
    """Validated schema name from ``config``, or None for the default search_path."""

    schema = (config.schema_name or "").strip()
    if not schema:
        return None
    if not _SCHEMA_NAME_PATTERN.fullmatch(schema):
        logger.warning("Ignoring invalid schema name %r; using the default search_path", config.schema_name)
        return None
    return schema


def get_engine() -> AsyncEngine:
    global _engine, _session_factory

    if _engine is None:
        options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
        if settings.database.serverless or settings.debug:
            options["poolclass"] = NullPool
        _engine = create_async_engine(settings.database.url, **options)
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False, class_=AsyncSession)
    return _engine


async def _apply_search_path(target: Any) -> None:
    schema = schema_name_for(settings.database)
    if schema:
        await target.execute(text(f'SET search_path TO "{schema}", public'))


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Yield a session bound to the configured schema."""

    get_engine()
    assert _session_factory is not None
    async with _session_factory() as session:
        await _apply_search_path(session)
        yield session


async def init_models() -> None:
    """Create the recording, review and catalog tables when missing."""

    schema = schema_name_for(settings.database)
    async with get_engine().begin() as conn:
        if schema:
            await conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))
        await _apply_search_path(conn)
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Ensured coach tables in schema %s", schema or "public")


async def dispose_engine() -> None:
    """Release pooled connections; a later call to ``get_engine`` starts fresh."""

    global _engine, _session_factory

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = ["dispose_engine", "get_engine", "init_models", "schema_name_for", "session_scope"]
