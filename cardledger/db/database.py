"""
Inventory database wiring.

One async engine per process, built from settings at import time. Request
handlers get a session through ``get_session``, which owns the
transaction: it commits once the handler returns and rolls back when a
database error escapes the handler.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cardledger.config import settings
from cardledger.models.db import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Items are serialized after commit, so attributes must stay loaded
    return async_sessionmaker(bind, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.debug)
async_session_factory = build_session_factory(engine)


async def create_schema(bind: AsyncEngine) -> None:
    """Create missing inventory tables. Existing tables are left as they are."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    await create_schema(engine)
    logger.info("INVENTORY_SCHEMA_READY", extra={"tables": sorted(Base.metadata.tables)})


async def close_db() -> None:
    await engine.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session and one transaction per request."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise
