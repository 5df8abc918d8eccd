# =============================================================================
# core/services/ - Services
# =============================================================================
# - connection_service.py: Bounded-backoff database connection bootstrap
# =============================================================================

from .connection_service import ConnectionSupervisor, InvalidStateTransition

__all__ = [
    "ConnectionSupervisor",
    "InvalidStateTransition",
]
