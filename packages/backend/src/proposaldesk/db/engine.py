"""Async SQLAlchemy engine, session factory and bounded storage calls.

SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

storage_call() wraps every database round-trip the services make: it
bounds the call with settings.storage_timeout_seconds and turns timeouts
and connection-level failures into Unavailable, so a dead database never
hangs a request.
"""

import asyncio
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from proposaldesk.config import settings
from proposaldesk.errors import Unavailable

logger = structlog.get_logger()

# Connection pool: min 5, max 20 connections. SQLite (dev/test) uses its own pool.
_pool_args = (
    {}
    if settings.database_url.startswith("sqlite")
    else {
        "pool_size": 5,
        "max_overflow": 15,
        "pool_timeout": settings.storage_timeout_seconds,
    }
)

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_pool_args,
)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def storage_call(operation: str, timeout: float | None = None):
    """Bound a block of storage work; timeouts and lost connections → Unavailable.

    Usage:
        async with storage_call("project.get"):
            result = await self.db.execute(q)
    """
    limit = timeout if timeout is not None else settings.storage_timeout_seconds
    try:
        async with asyncio.timeout(limit):
            yield
    except TimeoutError as e:
        logger.warning("storage.timeout", operation=operation, timeout=limit)
        raise Unavailable(f"Storage timed out during {operation}") from e
    except (OperationalError, InterfaceError) as e:
        logger.warning("storage.unavailable", operation=operation, error=str(e))
        raise Unavailable(f"Storage unavailable during {operation}") from e
