"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (tables, Redis).

The session cookie comes from Starlette's SessionMiddleware: it signs the
cookie contents with session_secret (via itsdangerous), so the client can
read its session but not forge an identity_id. The auth core just sees
request.session as a dict.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from doorkeeper import __version__
from doorkeeper.api import api_router
from doorkeeper.api.errors import register_exception_handlers
from doorkeeper.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "doorkeeper.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from doorkeeper.db.engine import engine, init_models

    await init_models(engine)

    from doorkeeper.redis_client import close_redis, init_redis
    try:
        await init_redis()
        logger.info("doorkeeper.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("doorkeeper.redis_unavailable", error=str(e))
        # Redis is optional — rate limiting is skipped without it

    yield

    logger.info("doorkeeper.shutdown")
    await close_redis()
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Doorkeeper",
        description="Password authentication and session identity",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → RateLimit → CORS → Session → handler

    from doorkeeper.middleware.rate_limit import RateLimitMiddleware
    from doorkeeper.middleware.request_id import RequestIdMiddleware
    from doorkeeper.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site=settings.session_same_site,
        https_only=settings.session_https_only,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: doorkeeper.main:app)
app = create_app()
