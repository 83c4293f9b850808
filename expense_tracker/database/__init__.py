import logging
from .postgres import (
    init_db,
    close_db,
    check_db_connection,
    get_async_session,
    get_session_factory,
)
from .redis import close_redis, check_redis_connection

logger = logging.getLogger(__name__)


async def init_databases():
    """Initialize the relational store"""
    try:
        await init_db()
        logger.info("All databases initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


async def close_databases():
    """Close all database connections"""
    try:
        await close_db()
        await close_redis()
        logger.info("All database connections closed")
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")


async def check_database_health():
    """Check health of all database connections

    Redis only backs rate limiting (fail-open), so it does not affect overall.
    """
    db_status = await check_db_connection()
    redis_status = await check_redis_connection()

    return {
        "database": db_status,
        "redis": redis_status,
        "overall": db_status
    }

__all__ = [
    "init_databases",
    "close_databases",
    "check_database_health",
    "get_async_session",
    "get_session_factory",
]
