"""Async engine, session dependency, and schema bootstrap."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from bizdash.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

engine = create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)

async_session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; every handler commits its own writes."""
    async with async_session_factory() as session:
        yield session


async def init_db() -> None:
    """Create missing tables. Alembic owns the schema in production."""
    import bizdash.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Schema ready (%d tables)", len(SQLModel.metadata.tables))


async def close_db() -> None:
    await engine.dispose()
