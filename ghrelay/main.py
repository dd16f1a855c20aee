"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.
It sets up all routes and exception handlers.

Design Decisions:
- Use lifespan events for startup/shutdown
- Validate configuration on startup (fail-fast)
- Expose health check endpoints
- Errors escaping a route come back as plain text, like the webhook responses
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from ghrelay import __version__
from ghrelay.config import get_settings
from ghrelay.logging_config import get_logger, setup_logging
from ghrelay.webhook import router as webhook_router

# Initialize logging first
setup_logging()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events for the application.
    """
    settings = get_settings()
    logger.info(
        "Starting GitHub relay",
        host=settings.host,
        port=settings.port,
        visibility=settings.visibility_filter.value,
        allowed_owners=list(settings.allowed_owners_list),
        allowed_repos=list(settings.allowed_repos_list),
        thread_id=settings.telegram_thread_id
    )

    yield

    logger.info("Shutting down GitHub relay")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="GitHub Telegram Relay",
        description="Relays GitHub webhook events to a Telegram chat",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json"
    )

    # Register routes
    app.include_router(webhook_router)

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception
    ) -> PlainTextResponse:
        """Handle unexpected exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__
        )

        return PlainTextResponse(
            str(exc) or type(exc).__name__,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {
            "name": "GitHub Telegram Relay",
            "version": __version__,
            "status": "running",
            "webhook": "/webhook/github"
        }

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.

        Returns basic health status for load balancers and monitors.
        """
        return {
            "status": "healthy",
            "service": "ghrelay",
            "version": __version__
        }

    @app.get("/ready")
    async def readiness_check():
        """
        Readiness check endpoint.

        Verifies that the configuration loads and yields a usable destination.
        """
        try:
            settings = get_settings()
            settings.filter_config()
            settings.chat_config()

            return {
                "status": "ready",
                "service": "ghrelay"
            }
        except Exception as e:
            logger.error("Readiness check failed", error=str(e))
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Not ready: {type(e).__name__}"
            )

    return app


# Create the application instance
app = create_app()
