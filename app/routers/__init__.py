# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# - health.py: Health, liveness and readiness endpoints
#
# Everything that no router matches is handled by the route table in
# app/routing.py.
# =============================================================================

from . import health

__all__ = [
    "health",
]
