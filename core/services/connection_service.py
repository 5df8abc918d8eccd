# =============================================================================
# core/services/connection_service.py - Database Connection Bootstrap
# =============================================================================
# Drives the startup connection to the database as an explicit state machine:
#
#   connecting --success--> connected
#   connecting --attempts exhausted--> failed
#   connecting --unexpected error--> failed
#   failed --run() again--> connecting
#
# Retries use tenacity with full-jitter exponential backoff
# (wait_random_exponential) and a bounded number of attempts. Every failed
# attempt is logged together with the delay before the next one, and the
# latest status is available at any time through status() for the
# readiness endpoint.
#
# Usage:
#   supervisor = ConnectionSupervisor(client.connect, settings)
#   await supervisor.run()          # raises DatabaseConnectionError on failure
#   supervisor.status().state       # ConnectionState.CONNECTED
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from core.models.connection import ALLOWED_TRANSITIONS, ConnectionState, ConnectionStatus
from lib.database import DatabaseConnectionError
from lib.utils import utc_now

if TYPE_CHECKING:
    from app.config import Settings

logger = logging.getLogger(__name__)


class InvalidStateTransition(RuntimeError):
    """Raised when the supervisor is asked to move along an undefined edge."""


class ConnectionSupervisor:
    """
    Runs the connect callable until it succeeds or attempts run out.

    The supervisor never retries forever: once DB_CONNECT_MAX_ATTEMPTS
    attempts have failed it moves to FAILED and raises, leaving the
    decision to exit to the caller.
    """

    def __init__(
        self,
        connect: Callable[[], Awaitable[None]],
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._connect = connect
        self._sleep = sleep
        self.max_attempts = settings.DB_CONNECT_MAX_ATTEMPTS
        self.backoff_multiplier = settings.DB_CONNECT_BACKOFF_MULTIPLIER
        self.backoff_max = settings.DB_CONNECT_BACKOFF_MAX

        self._state = ConnectionState.CONNECTING
        self._attempts = 0
        self._last_error: str | None = None
        self._connected_at = None
        self._updated_at = utc_now()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    def status(self) -> ConnectionStatus:
        """Immutable snapshot of the current state."""
        return ConnectionStatus(
            state=self._state,
            attempts=self._attempts,
            max_attempts=self.max_attempts,
            last_error=self._last_error,
            connected_at=self._connected_at,
            updated_at=self._updated_at,
        )

    def _transition(self, new_state: ConnectionState) -> None:
        if new_state == self._state:
            return
        if new_state not in ALLOWED_TRANSITIONS[self._state]:
            raise InvalidStateTransition(
                f"Cannot move database connection from {self._state.value} to {new_state.value}"
            )
        logger.info(f"Database connection: {self._state.value} -> {new_state.value}")
        self._state = new_state
        self._updated_at = utc_now()

    # -------------------------------------------------------------------------
    # Retry loop
    # -------------------------------------------------------------------------

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Database connection attempt {retry_state.attempt_number}/{self.max_attempts} "
            f"failed: {self._last_error}. Retrying in {delay:.2f}s"
        )

    async def run(self) -> ConnectionStatus:
        """
        Connect with bounded exponential backoff.

        Returns:
            ConnectionStatus: Snapshot in the CONNECTED state

        Raises:
            DatabaseConnectionError: When every attempt failed, or connect
                raised something other than DatabaseConnectionError
        """
        self._transition(ConnectionState.CONNECTING)
        self._attempts = 0
        self._last_error = None

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random_exponential(multiplier=self.backoff_multiplier, max=self.backoff_max),
            retry=retry_if_exception_type(DatabaseConnectionError),
            before_sleep=self._before_sleep,
            sleep=self._sleep,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    self._attempts = attempt.retry_state.attempt_number
                    try:
                        await self._connect()
                    except DatabaseConnectionError as e:
                        self._last_error = e.message
                        self._updated_at = utc_now()
                        raise
        except RetryError as e:
            self._transition(ConnectionState.FAILED)
            logger.error(
                f"Giving up on the database after {self._attempts} attempts: {self._last_error}"
            )
            raise DatabaseConnectionError(
                f"Database unreachable after {self._attempts} attempts",
                attempts=self._attempts,
                cause=self._last_error,
            ) from e.last_attempt.exception()
        except Exception as e:
            # Only DatabaseConnectionError is retried
            self._last_error = f"{type(e).__name__}: {e}"
            self._transition(ConnectionState.FAILED)
            logger.exception(f"Unexpected error while connecting to the database: {e}")
            raise DatabaseConnectionError(
                f"Unexpected error while connecting to the database: {e}",
                attempts=self._attempts,
                cause=type(e).__name__,
            ) from e

        self._connected_at = utc_now()
        self._transition(ConnectionState.CONNECTED)
        logger.info(f"Database connected after {self._attempts} attempt(s)")
        return self.status()
