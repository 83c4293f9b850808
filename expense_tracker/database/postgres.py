from typing import AsyncGenerator, Optional
import logging
from fastapi import Depends
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from expense_tracker.core.config import settings

# Base class for SQLAlchemy models
Base = declarative_base()

logger = logging.getLogger(__name__)

# Set by init_db() during application startup
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine with connection pooling"""
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.debug,  # Log SQL queries in debug mode
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,  # Validate connections before use
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    """Async session factory bound to the given engine"""
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker:
    """Dependency returning the store handle injected into services"""
    if AsyncSessionLocal is None:
        raise ConnectionError("Database not available")
    return AsyncSessionLocal


async def get_async_session(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    async with session_factory() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise


async def init_db(database_url: Optional[str] = None):
    """Initialize the database engine and create tables"""
    global engine, AsyncSessionLocal

    # Import models so their tables are registered on Base.metadata
    from expense_tracker import models  # noqa: F401

    try:
        engine = create_engine(database_url)
        AsyncSessionLocal = create_session_factory(engine)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def check_db_connection() -> bool:
    """Check database connection"""
    if engine is None:
        return False
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.fetchone() is not None
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


async def close_db():
    """Close database connections"""
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
        logger.info("Database connections closed")
    engine = None
    AsyncSessionLocal = None
