"""
Async SQLAlchemy engine & session handling for the ward store.

Commit Model
------------
Sessions handed out here never commit on their own.
``WardRepository.upsert_batch`` commits each import batch as soon as
it is written, so by the time an error escapes a request or an import
run, everything before the failing batch is already durable.  The
session scope only discards what is still uncommitted: the failed
batch, or nothing at all for read-only requests.

Table Creation
--------------
``init_models()`` issues ``CREATE TABLE IF NOT EXISTS`` for every
registered ORM model (``Base.metadata.create_all`` via ``run_sync``).
It is called from the FastAPI lifespan and from ``wardmap-import``.

``postgis_version()`` is the startup probe: it fails fast when the
database is unreachable or the PostGIS extension is missing.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from wardmap.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Imports hold one connection per batch; API reads are short.
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=10,
    max_overflow=5,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    One session for one request or one import run.

    If an exception escapes while a transaction is still open, that
    transaction is rolled back before the exception propagates.
    Batches committed earlier are left alone.  The session is always
    closed.
    """
    session = async_session_factory()
    try:
        yield session
    except Exception as exc:
        if session.in_transaction():
            await session.rollback()
            if isinstance(exc, SQLAlchemyError):
                logger.error("Database error, uncommitted ward changes discarded: %s", exc)
        raise
    finally:
        await session.close()


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: a ``session_scope`` session per request."""
    async with session_scope() as session:
        yield session


async def init_models() -> None:
    """
    Create all tables defined in ``Base.metadata`` if they do not
    already exist.

    Must be called **after** ``wardmap.models.ward`` has been imported
    so that ``Base.metadata`` knows the ``wards`` table.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def postgis_version() -> str | None:
    """Version string reported by the PostGIS extension."""
    async with engine.begin() as conn:
        result = await conn.execute(text("SELECT PostGIS_Version()"))
        return result.scalar()
