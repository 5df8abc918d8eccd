# =============================================================================
# lib/database.py - Database Client
# =============================================================================
# Thin wrapper around an SQLAlchemy async engine.
#
# The server itself stores nothing; it only needs to know the database is
# reachable before it starts listening. connect() performs one probe
# (open a pooled connection, run SELECT 1) and is retried by the
# ConnectionSupervisor in core/services/connection_service.py.
#
# Usage:
#   from lib.database import DatabaseClient
#   client = DatabaseClient(settings)
#   await client.connect()
#   ...
#   await client.dispose()
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from lib.utils import ApplicationError

if TYPE_CHECKING:
    from app.config import Settings

# Set up logging for this module
logger = logging.getLogger(__name__)


class DatabaseConnectionError(ApplicationError):
    """
    Error raised when the database cannot be reached.

    Carries the underlying cause and, once the bootstrap gives up,
    the number of attempts that were made.
    """

    def __init__(self, message: str, attempts: int | None = None, cause: str | None = None):
        details = {}
        if attempts is not None:
            details["attempts"] = attempts
        if cause:
            details["cause"] = cause
        super().__init__(
            message,
            code="DATABASE_UNAVAILABLE",
            suggestion="Check DATABASE_URL and that the database server is reachable",
            details=details,
        )


class DatabaseClient:
    """
    Owns the async engine for DATABASE_URL.

    The engine is created lazily on the first connect() so that building
    the client never touches the network.
    """

    def __init__(self, settings: Settings):
        self._url = settings.DATABASE_URL
        self._timeout = settings.DB_CONNECT_TIMEOUT
        self._engine: AsyncEngine | None = None

    @property
    def safe_url(self) -> str:
        """DATABASE_URL with the password masked, for logging."""
        try:
            return make_url(self._url).render_as_string(hide_password=True)
        except ArgumentError:
            return "<unparseable url>"

    def get_engine(self) -> AsyncEngine:
        """
        Get or create the engine.

        Raises:
            DatabaseConnectionError: If the URL is invalid or the driver is missing
        """
        if self._engine is None:
            try:
                self._engine = create_async_engine(self._url, pool_pre_ping=True)
            except (ArgumentError, ImportError) as e:
                raise DatabaseConnectionError(
                    f"Invalid database configuration: {e}",
                    cause=type(e).__name__,
                ) from e
            logger.info(f"Database engine created for {self.safe_url}")
        return self._engine

    async def connect(self) -> None:
        """
        Probe the database once.

        Raises:
            DatabaseConnectionError: If the probe fails or times out
        """
        engine = self.get_engine()
        try:
            async with asyncio.timeout(self._timeout):
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
        except TimeoutError as e:
            raise DatabaseConnectionError(
                f"Timed out after {self._timeout}s connecting to {self.safe_url}",
                cause="TimeoutError",
            ) from e
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseConnectionError(
                f"Could not connect to {self.safe_url}: {e}",
                cause=type(e).__name__,
            ) from e

    async def dispose(self) -> None:
        """Release pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info("Database engine disposed")
