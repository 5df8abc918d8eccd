# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# - connection.py: Database connection state machine schemas
# =============================================================================

from .connection import ALLOWED_TRANSITIONS, ConnectionState, ConnectionStatus

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ConnectionState",
    "ConnectionStatus",
]
