"""
Database engine and session management for the catalog cache.

Provides the async SQLAlchemy engine, the session factory used by jobs, and
the request-scoped session dependency used by FastAPI routes.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from carddex.config import settings
from carddex.models.db import Base

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Population commits as it goes, so loaded rows must stay usable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Commits when the request handler returns, rolls back on database errors.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Create the cached_sets and cached_cards tables if missing.

    Called once at application and job startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
