"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, database engine).
Middleware, CORS, error envelope, media files and routers are all
registered here; each concern lives in its own module.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from socialnet import __version__
from socialnet.api import api_router
from socialnet.config import settings
from socialnet.db.redis import close_redis, init_redis
from socialnet.middleware.errors import register_error_handlers
from socialnet.middleware.rate_limit import RateLimitMiddleware
from socialnet.middleware.request_id import RequestIdMiddleware
from socialnet.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown.
    """
    logger.info(
        "socialnet.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    try:
        await init_redis()
        logger.info("socialnet.redis_connected", url=settings.redis_url)
    except Exception as e:
        # Redis is optional; only rate limiting depends on it
        logger.warning("socialnet.redis_unavailable", error=str(e))

    yield

    logger.info("socialnet.shutdown")
    await close_redis()

    from socialnet.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title=settings.product_name,
        description="Social network backend — accounts, sessions, profiles and follows",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → RateLimit → CORS → ErrorEnvelope → handler

    register_error_handlers(app, settings)
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

    app.include_router(api_router)

    # Locally stored avatars and cover images
    app.mount(
        settings.media_url,
        StaticFiles(directory=settings.media_root, check_dir=False),
        name="media",
    )

    return app


# Default app instance (used by uvicorn: socialnet.main:app)
app = create_app()
