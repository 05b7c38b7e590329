"""Health check endpoint.

Verifies the server is running and whether its dependencies (database,
Redis) are reachable. Both checks are time-bounded.
"""

import asyncio

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from proposaldesk import __version__
from proposaldesk.config import settings
from proposaldesk.db.engine import get_db

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with asyncio.timeout(settings.storage_timeout_seconds):
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    try:
        from redis.asyncio import from_url

        r = from_url(settings.redis_url)
        async with asyncio.timeout(settings.storage_timeout_seconds):
            await r.ping()
        await r.aclose()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    # Redis only backs rate limiting, so it doesn't make us unhealthy
    status = "healthy" if checks["database"] == "ok" else "degraded"

    return {"status": status, **checks}
