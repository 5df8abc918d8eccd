# =============================================================================
# app/main.py - FastAPI Application Factory
# =============================================================================
# Builds the Portico application: middleware pipeline, exception handlers,
# health routes and the route table that answers everything else.
#
# Usage:
#   from app.config import get_settings
#   from app.main import create_app
#   app = create_app(get_settings())
#
# The process entry point (database bootstrap, then uvicorn) is app/server.py.
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import Settings
from app.exceptions import (
    PorticoException,
    portico_exception_handler,
    unhandled_exception_handler,
)
from app.pipeline import build_middleware
from app.routers import health
from app.routing import RouteTable, render_not_found

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    The database connection is established by app/server.py before the
    server starts, so this only reports the lifecycle.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting Portico in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    yield

    logger.info("Shutting down Portico")


def create_app(settings: Settings) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Validated settings, built once by the caller

    Returns:
        FastAPI: Configured application
    """
    app = FastAPI(
        title="Portico",
        description="Web front door: static assets, request hardening, sessions and auth context.",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
        middleware=build_middleware(settings),
    )
    app.state.settings = settings
    app.state.connection = None

    templates = Jinja2Templates(directory=str(settings.TEMPLATES_DIR))
    route_table = RouteTable(fallback=render_not_found(templates))
    app.state.route_table = route_table

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    @app.exception_handler(PorticoException)
    async def handle_portico_exception(request: Request, exc: PorticoException):
        """Handle custom Portico exceptions."""
        return await portico_exception_handler(request, exc)

    @app.exception_handler(405)
    async def handle_method_not_allowed(request: Request, exc: StarletteHTTPException):
        """A known path with an unsupported method is treated like an unknown path."""
        return await route_table.dispatch(request)

    @app.exception_handler(Exception)
    async def handle_general_exception(request: Request, exc: Exception):
        """Errors raised above UnhandledErrorMiddleware (static, access log, sanitizers, CORS)."""
        return await unhandled_exception_handler(request, exc)

    # =========================================================================
    # Routers
    # =========================================================================

    app.include_router(health.router, tags=["Health"])

    # Everything no router matched
    app.router.default = route_table

    return app
