"""
Database engine, session factory, and declarative base for RWA Lens.

Uses async SQLAlchemy 2.0 (aiosqlite in development, asyncpg in production).
Engines are created per store instance; nothing here is a process-wide singleton.
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from rwalens.config import Settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for RWA Lens models."""

    pass


def create_engine(settings: Settings, url: Optional[str] = None) -> AsyncEngine:
    """Create an async engine for the configured database."""
    url = url or settings.async_database_url

    if url.startswith("sqlite"):
        kwargs: dict = {"echo": settings.debug}
        if ":memory:" in url:
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        engine = create_async_engine(url, **kwargs)
    else:
        engine = create_async_engine(
            url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            echo=settings.debug,
        )

    logger.info("database_engine_created", dialect=engine.dialect.name)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables from the ORM models (idempotent)."""
    # Import models so Base.metadata is populated
    import rwalens.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_created")
