"""FastAPI application factory.

create_app() returns a configured FastAPI instance. The lifespan manages
startup/shutdown (Redis pool, database engine). Middleware, CORS, the
core-error handler and routers are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from proposaldesk import __version__
from proposaldesk.api import api_router
from proposaldesk.api.errors import register_error_handlers
from proposaldesk.config import settings
from proposaldesk.middleware.rate_limit import RateLimitMiddleware
from proposaldesk.middleware.request_id import RequestIdMiddleware
from proposaldesk.middleware.security import SecurityHeadersMiddleware
from proposaldesk.redis_client import close_redis, init_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "proposaldesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    try:
        await init_redis()
        logger.info("proposaldesk.redis_connected", url=settings.redis_url)
    except Exception as e:
        # Redis is optional; only rate limiting uses it
        logger.warning("proposaldesk.redis_unavailable", error=str(e))

    yield

    logger.info("proposaldesk.shutdown")
    await close_redis()

    from proposaldesk.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="ProposalDesk",
        description="Project proposal submission and supervisor review",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: proposaldesk.main:app)
app = create_app()
