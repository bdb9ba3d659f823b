"""
Database connection module for VocalClerk.

Owns the process-wide asyncpg pool used by PostgresStore.
"""

import logging
import os
import pathlib
from typing import Optional

import asyncpg

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "").strip()

SCHEMA_PATH = pathlib.Path(__file__).parent / "schema.sql"

_pool: Optional[asyncpg.Pool] = None


async def init_db_pool(
    dsn: Optional[str] = None,
    min_size: int = 2,
    max_size: int = 10,
    command_timeout: float = 60.0,
) -> asyncpg.Pool:
    """
    Create the connection pool. Call once at application startup.
    """
    global _pool

    if _pool is not None:
        logger.warning("Database pool already initialized")
        return _pool

    dsn = dsn or DATABASE_URL
    if not dsn:
        raise RuntimeError("DATABASE_URL is not set")

    logger.info(f"Initializing database pool (min={min_size}, max={max_size})")
    try:
        _pool = await asyncpg.create_pool(
            dsn,
            min_size=min_size,
            max_size=max_size,
            command_timeout=command_timeout,
        )
    except Exception as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise
    logger.info("Database pool initialized")
    return _pool


async def close_db_pool() -> None:
    global _pool

    if _pool is None:
        logger.warning("Database pool not initialized, nothing to close")
        return

    await _pool.close()
    _pool = None
    logger.info("Database pool closed")


def get_pool() -> asyncpg.Pool:
    """
    Raises RuntimeError if the pool has not been initialized.
    """
    if _pool is None:
        raise RuntimeError(
            "Database pool not initialized. Call init_db_pool() first."
        )
    return _pool


async def init_schema(pool: Optional[asyncpg.Pool] = None) -> None:
    """Apply schema.sql; every statement in it is idempotent."""
    if not SCHEMA_PATH.exists():
        logger.error(f"Schema file not found: {SCHEMA_PATH}")
        raise FileNotFoundError(f"Schema file not found: {SCHEMA_PATH}")

    logger.info(f"Initializing database schema from {SCHEMA_PATH}")
    pool = pool or get_pool()
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_PATH.read_text())
    logger.info("Database schema initialized")


async def health_check() -> dict:
    try:
        async with get_pool().acquire() as conn:
            await conn.fetchval("SELECT 1")
        return {
            "status": "healthy",
            "database": "connected",
            "pool_size": _pool.get_size() if _pool else 0,
            "pool_free": _pool.get_idle_size() if _pool else 0,
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": "disconnected",
            "error": str(e),
        }
