# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - database.py: SQLAlchemy async client used to probe the database
# - utils.py: Shared utilities (error base class, time helpers)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.database import DatabaseClient, DatabaseConnectionError
from lib.utils import ApplicationError, epoch_millis, utc_now

__all__ = [
    # Database
    "DatabaseClient",
    "DatabaseConnectionError",
    # Utils
    "ApplicationError",
    "epoch_millis",
    "utc_now",
]
