# =============================================================================
# core/models/connection.py - Connection State Schemas
# =============================================================================
# These models describe the lifecycle of the database connection bootstrap:
# - ConnectionState: Enum for supervisor states
# - ConnectionStatus: Read-only snapshot exposed by /health/ready
#
# Flow: connecting -> connected
#       connecting -> failed -> (new run) -> connecting
# =============================================================================

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ConnectionState(str, Enum):
    """
    Possible states of the database connection.

    - connecting: Attempts are in progress (including backoff sleeps)
    - connected: The last attempt succeeded
    - failed: Attempts were exhausted, or connect raised an unexpected error
    """
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


# Allowed transitions; anything else is a programming error
ALLOWED_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.CONNECTING: frozenset({ConnectionState.CONNECTED, ConnectionState.FAILED}),
    ConnectionState.CONNECTED: frozenset(),
    ConnectionState.FAILED: frozenset({ConnectionState.CONNECTING}),
}


class ConnectionStatus(BaseModel):
    """
    Snapshot of the supervisor at one point in time.

    Example:
        {
            "state": "connecting",
            "attempts": 3,
            "max_attempts": 10,
            "last_error": "Could not connect to postgresql+asyncpg://app:***@db/app: ...",
            "connected_at": null,
            "updated_at": "2026-10-19T10:30:00Z"
        }
    """
    model_config = ConfigDict(frozen=True)

    state: ConnectionState
    attempts: int = Field(default=0, ge=0, description="Attempts made in the current run")
    max_attempts: int = Field(..., ge=1)
    last_error: str | None = None
    connected_at: datetime | None = None
    updated_at: datetime

    @property
    def is_ready(self) -> bool:
        return self.state == ConnectionState.CONNECTED
