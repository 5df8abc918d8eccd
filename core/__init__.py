# =============================================================================
# core/ - Framework-Agnostic Logic
# =============================================================================
# This package contains logic that does not depend on the web framework:
# - models/: Pydantic schemas (connection state)
# - services/: The database connection bootstrap
#
# Code in this package should NOT import from FastAPI or Starlette.
# This keeps the logic testable and reusable.
# =============================================================================
