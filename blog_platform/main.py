"""Main FastAPI application."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .core.auth import CredentialService
from .core.bootstrap import ensure_default_admin
from .core.exceptions import BaseAPIException
from .core.logging import configure_logging
from .core.rate_limit import FixedWindowRateLimiter, RedisRateLimiter
from .database import Database
from .api.middleware import (
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    RateLimitingMiddleware,
    SecurityHeadersMiddleware,
    api_exception_handler,
    request_validation_handler,
)
from .api.routes import admin, analytics, auth, posts, taxonomy


def build_rate_limiter(settings: Settings):
    limits = settings.rate_limit
    if limits.backend == "redis":
        return RedisRateLimiter.from_url(
            limits.redis_url, limits.requests, limits.window_seconds
        )
    return FixedWindowRateLimiter(limits.requests, limits.window_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings: Settings = app.state.settings

    # Startup
    configure_logging(settings)
    database = Database(settings.database)
    credentials = CredentialService(settings.auth)
    await database.create_all()
    await ensure_default_admin(database, credentials, settings.admin)

    app.state.database = database
    app.state.credentials = credentials
    app.state.rate_limiter = build_rate_limiter(settings)
    yield

    # Shutdown
    await app.state.rate_limiter.close()
    await database.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api.title,
        description=settings.api.description,
        version=settings.api.version,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_exception_handler(BaseAPIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Add middleware (last added runs first)
    app.add_middleware(RateLimitingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(posts.router, prefix="/api/v1")
    app.include_router(taxonomy.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")
    app.include_router(analytics.router, prefix="/api/v1")

    @app.get("/")
    async def root(request: Request):
        return {
            "message": "Blog Platform API",
            "version": request.app.state.settings.api.version,
            "status": "healthy"
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "blog_platform.main:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
        workers=settings.api.workers if not settings.api.reload else 1,
    )
