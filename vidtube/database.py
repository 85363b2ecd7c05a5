"""asyncpg pool shared by the user and comment stores, plus schema setup."""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from vidtube.config import get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return the pool opened by init_database().

    Raises:
        RuntimeError: If the pool has not been opened
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_database() first.")
    return _pool


async def init_database() -> asyncpg.Pool:
    """Open the pool once; later calls reuse it."""
    global _pool

    if _pool is None:
        settings = get_settings()
        _pool = await asyncpg.create_pool(
            settings.postgres_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            timeout=settings.db_timeout_seconds,
            command_timeout=settings.db_timeout_seconds,
        )
        logger.info(
            "database_pool_created",
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
    return _pool


async def close_database() -> None:
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("database_pool_closed")


async def run_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply the users and comments schema files in name order.

    Every file uses IF NOT EXISTS, so startup re-runs them all.

    Returns:
        Names of the applied files
    """
    files = sorted(migrations_dir.glob("*.sql")) if migrations_dir.is_dir() else []
    if not files:
        logger.warning("no_migrations_found", path=str(migrations_dir))
        return []

    pool = await get_pool()
    applied = []
    async with pool.acquire() as conn:
        for path in files:
            try:
                await conn.execute(path.read_text())
            except asyncpg.PostgresError as e:
                logger.error("migration_failed", file=path.name, error=str(e))
                raise
            applied.append(path.name)
            logger.info("migration_applied", file=path.name)
    return applied


async def health_check() -> bool:
    """True when the pool is open and answers a trivial query in time."""
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT 1", timeout=get_settings().db_timeout_seconds
            ) == 1
    except (RuntimeError, OSError, asyncpg.PostgresError) as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
