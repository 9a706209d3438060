"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from update_registry import __version__
from update_registry.api import create_router
from update_registry.config import Settings, get_settings
from update_registry.db.database import Database
from update_registry.exceptions import RegistryException
from update_registry.ratelimit.store import RateLimitStore

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("update_registry").setLevel(level)


def create_lifespan(settings: Settings):
    """Create a lifespan context manager.

    Args:
        settings: Application settings.

    Returns:
        Lifespan context manager.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager.

        Opens the database and starts the rate-limit sweep; both are
        shut down again on exit.

        Args:
            app: FastAPI application.

        Yields:
            None.
        """
        # Initialize database
        db = Database(settings.database_url)
        await db.initialize()
        app.state.db = db

        limiter: RateLimitStore = app.state.rate_limiter
        await limiter.start()

        logger.info(f"Update registry {__version__} started")

        try:
            yield
        finally:
            # Cleanup
            await limiter.close()
            await db.close()
            logger.info("Update registry stopped")

    return lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Update Registry",
        description="Update server for Tauri desktop applications",
        version=__version__,
        lifespan=create_lifespan(settings),
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings
    app.state.rate_limiter = RateLimitStore.from_settings(settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add exception handlers
    @app.exception_handler(RegistryException)
    async def registry_error_handler(
        request: Request,
        exc: RegistryException,
    ) -> JSONResponse:
        """Handle registry errors.

        Args:
            request: FastAPI request.
            exc: Registry error.

        Returns:
            JSON error response.
        """
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=exc.headers(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Report malformed input as 400 with the validation errors."""
        return JSONResponse(
            status_code=400,
            content={
                "detail": "Invalid request parameters",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    # Add middleware for request state
    @app.middleware("http")
    async def add_request_state(request: Request, call_next):
        """Add the database to request state and rate-limit headers to responses.

        Args:
            request: FastAPI request.
            call_next: Next middleware.

        Returns:
            Response.
        """
        # Set database if it exists
        if hasattr(app.state, "db"):
            request.state.db = app.state.db
        response = await call_next(request)

        result = getattr(request.state, "rate_limit", None)
        if result is not None:
            for name, value in result.headers().items():
                response.headers.setdefault(name, value)
        return response

    # Include API router
    app.include_router(create_router())

    return app


# Create default application instance
app = create_app()
