# =============================================================================
# app/server.py - Process Entry Point
# =============================================================================
# Startup sequence:
#   1. Load and validate settings (environment / .env)
#   2. Configure logging
#   3. Build the application
#   4. Connect to the database (bounded backoff, see ConnectionSupervisor)
#   5. Start uvicorn on HOST:PORT - exactly once, only after step 4 succeeded
#
# If the database never becomes reachable the process exits with status 1.
#
# Usage:
#   portico            # console script
#   python -m app
# =============================================================================

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from app.config import Settings, get_settings
from app.main import configure_logging, create_app
from core.services.connection_service import ConnectionSupervisor
from lib.database import DatabaseClient, DatabaseConnectionError

logger = logging.getLogger(__name__)

ServeFn = Callable[[FastAPI, Settings], Awaitable[None]]


async def run_uvicorn(app: FastAPI, settings: Settings) -> None:
    """Listen on HOST:PORT until shutdown."""
    config = uvicorn.Config(
        app,
        host=settings.HOST,
        port=settings.PORT,
        access_log=False,  # the pipeline logs access itself
        log_config=None,
    )
    server = uvicorn.Server(config)
    logger.info(f"app server listening on port: {settings.PORT}")
    await server.serve()


async def serve(
    settings: Settings,
    app: FastAPI | None = None,
    database: DatabaseClient | None = None,
    listen: ServeFn = run_uvicorn,
) -> None:
    """
    Connect to the database, then serve the app.

    Raises:
        DatabaseConnectionError: If the database stayed unreachable
    """
    if app is None:
        app = create_app(settings)
    if database is None:
        database = DatabaseClient(settings)
    supervisor = ConnectionSupervisor(database.connect, settings)
    app.state.connection = supervisor

    try:
        await supervisor.run()
        await listen(app, settings)
    finally:
        await database.dispose()


def main() -> None:
    """Console entry point. Takes no flags; configuration comes from the environment."""
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(2)

    configure_logging(settings)

    try:
        asyncio.run(serve(settings))
    except DatabaseConnectionError as e:
        logger.error(f"Startup aborted: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
