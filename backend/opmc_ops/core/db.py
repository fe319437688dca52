"""
Async SQLAlchemy engine + session dependency.

Usage in FastAPI endpoints:
    async def my_endpoint(db: AsyncSession = Depends(get_db)):
        ...
"""
import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy import text

from opmc_ops.core.config import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()


def _engine_kwargs(url: str) -> dict[str, Any]:
    # SQLite (tests, ad-hoc runs) uses its own pool class; sizing args are rejected
    if url.startswith("sqlite"):
        return {"echo": False}
    return {
        "pool_size": _settings.db_pool_size,
        "max_overflow": _settings.db_max_overflow,
        "pool_pre_ping": True,
        "echo": _settings.is_development,
    }


engine = create_async_engine(_settings.database_url, **_engine_kwargs(_settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an async DB session."""
    async with AsyncSessionLocal() as session:
        yield session


async def check_db_connection() -> bool:
    """Return True if the database is reachable."""
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.error("Database health check failed: %s", exc)
        return False
