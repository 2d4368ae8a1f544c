"""FastAPI application factory.

Learn: App factory pattern, create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown. Middleware, CORS, error
handlers, and routers are all registered here.

Startup checks the session signing key, so a key shorter than 128 bits
stops the server before it can issue a single weak token.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from configplaza import __version__
from configplaza.api import api_router
from configplaza.auth.tokens import signing_key
from configplaza.config import settings
from configplaza.errors import register_exception_handlers
from configplaza.middleware.request_id import RequestIdMiddleware
from configplaza.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. A ConfigurationError raised here aborts startup.
    """
    signing_key()
    logger.info(
        "acp.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        github_oauth=bool(settings.github_client_id and settings.github_client_secret),
    )

    yield

    logger.info("acp.shutdown")

    from configplaza.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="ConfigPlaza",
        description="Catalog and sharing platform for AI-tool configuration",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: configplaza.main:app)
app = create_app()
